from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OutcomeKind(str, Enum):
    OK = 'ok'
    NOT_FOUND = 'not_found'
    REJECTED = 'rejected'
    ALREADY_SATISFIED = 'already_satisfied'


class Reason(str, Enum):
    ROOM_NOT_FOUND = 'room_not_found'
    NOT_IN_ROOM = 'not_in_room'
    ROOM_FULL = 'room_full'
    GAME_IN_PROGRESS = 'game_in_progress'
    NOT_ADMIN = 'not_admin'
    INVALID_STATE = 'invalid_state'
    INVALID_PAYLOAD = 'invalid_payload'
    UNKNOWN_GAME_TYPE = 'unknown_game_type'
    ACTION_REJECTED = 'action_rejected'
    INTERNAL_ERROR = 'internal_error'


@dataclass
class Outcome:
    """Result of a Lobby operation, returned to the caller as data."""

    kind: OutcomeKind
    message: str
    reason: Optional[Reason] = None
    data: Any = None

    @property
    def success(self) -> bool:
        return self.kind in (OutcomeKind.OK, OutcomeKind.ALREADY_SATISFIED)

    @classmethod
    def ok(cls, message, data=None):
        return cls(OutcomeKind.OK, message, data=data)

    @classmethod
    def already_satisfied(cls, message, data=None):
        return cls(OutcomeKind.ALREADY_SATISFIED, message, data=data)

    @classmethod
    def not_found(cls, reason, message):
        return cls(OutcomeKind.NOT_FOUND, message, reason=reason)

    @classmethod
    def rejected(cls, reason, message, data=None):
        return cls(OutcomeKind.REJECTED, message, reason=reason, data=data)

    def to_ack(self):
        ack = {'success': self.success, 'message': self.message}
        if self.reason is not None:
            ack['error'] = self.reason.value
        if self.data is not None:
            ack['data'] = self.data
        return ack
