"""Outbound delivery of room events.

The session engine only talks to a ``Broadcaster``; the Socket.IO adapter
below is the one used by the running server, tests plug in a recorder.
"""
from __future__ import annotations

from typing import Optional, Protocol


class Broadcaster(Protocol):
    def subscribe(self, player_id: str, room_id: str) -> None:
        ...

    def unsubscribe(self, player_id: str, room_id: str) -> None:
        ...

    def to_room(self, room_id: str, event: str, payload: dict, skip: Optional[str] = None) -> None:
        ...

    def to_player(self, player_id: str, event: str, payload: dict) -> None:
        ...


class SocketIOBroadcaster:
    """Maps room channels onto Socket.IO rooms of a single namespace."""

    def __init__(self, socketio, namespace='/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def subscribe(self, player_id, room_id):
        self.socketio.server.enter_room(player_id, room_id, namespace=self.namespace)

    def unsubscribe(self, player_id, room_id):
        self.socketio.server.leave_room(player_id, room_id, namespace=self.namespace)

    def to_room(self, room_id, event, payload, skip=None):
        self.socketio.emit(event, payload, to=room_id, skip_sid=skip, namespace=self.namespace)

    def to_player(self, player_id, event, payload):
        # Every Socket.IO session is also a room named after its sid
        self.socketio.emit(event, payload, to=player_id, namespace=self.namespace)
