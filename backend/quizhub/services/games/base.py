from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

from quizhub.models import Player


class GameType(str, Enum):
    TOOHAK = 'Toohak'
    TRIVIA = 'Trivia'

    @classmethod
    def parse(cls, raw) -> Optional['GameType']:
        if isinstance(raw, cls):
            return raw
        for member in cls:
            if isinstance(raw, str) and raw.strip().lower() == member.value.lower():
                return member
        return None


class GamePhase(str, Enum):
    CREATED = 'created'
    READY = 'ready'
    RUNNING = 'running'
    QUESTION_OPEN = 'question open'
    ROUND_SETTLING = 'round settling'
    CONCLUDED = 'concluded'


ACTIVE_PHASES = (GamePhase.RUNNING, GamePhase.QUESTION_OPEN, GamePhase.ROUND_SETTLING)

NOT_IN_PROGRESS = "Game is not currently in progress."


@dataclass
class ActionResult:
    accepted: bool
    reason: Optional[str] = None
    data: Any = None

    @classmethod
    def accept(cls, data=None, reason=None):
        return cls(True, reason, data)

    @classmethod
    def reject(cls, reason):
        return cls(False, reason)


@dataclass
class PlayerRoundData:
    display_name: str
    score: int = 0
    answered_this_round: bool = False
    seated: bool = True

    def to_dict(self):
        return {
            'displayName': self.display_name,
            'score': self.score,
            'answeredThisRound': self.answered_this_round,
            'seated': self.seated,
        }


@dataclass
class GameOptions:
    """Settings a game reads in ``initialize``; unknown keys are ignored."""

    admin_ids: List[str] = field(default_factory=list)
    number_of_questions: int = 5
    round_time_ms: int = 10000
    settle_delay_ms: int = 3000
    questions_per_player: int = 5
    min_players: int = 2
    departure_policy: str = 'forfeit'

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> 'GameOptions':
        raw = raw or {}
        known = {k: v for k, v in raw.items() if k in cls.__dataclass_fields__ and v is not None}
        return cls(**known)


class GameInstance(Protocol):
    """Capabilities every game variant offers to the Lobby."""

    room_id: str
    game_type: GameType
    admin_ids: List[str]

    def initialize(self, players: Sequence[Player], options: Optional[Dict[str, Any]] = None) -> None:
        ...

    def start_cycle(self) -> bool:
        ...

    def handle_player_action(self, player_id: str, action: Dict[str, Any]) -> ActionResult:
        ...

    def handle_player_departure(self, player_id: str) -> None:
        ...

    def conclude(self, reason: Optional[str] = None, silent: bool = False) -> None:
        ...

    def project_client_state(self) -> Dict[str, Any]:
        ...

    def current_state(self) -> GamePhase:
        ...

    def player_data(self) -> Dict[str, PlayerRoundData]:
        ...


def read_int(action: Dict[str, Any], key: str) -> Optional[int]:
    value = action.get(key)
    # bool is an int subclass; a True option index is a client bug, not 1
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value
