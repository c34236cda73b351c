"""Room services: the in-memory registry and the player lifecycle (Lobby).

Every Lobby operation returns an ``Outcome`` instead of raising, so the
socket handlers can turn it into an ack as-is.
"""
from .lobby import Lobby
from .outcomes import Outcome, OutcomeKind, Reason
from .registry import RoomRegistry

__all__ = ['Lobby', 'Outcome', 'OutcomeKind', 'Reason', 'RoomRegistry']
