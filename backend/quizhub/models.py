from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple


class GameStatus(str, Enum):
    WAITING_TO_START = 'waiting to start'
    READY = 'ready'
    IN_GAME = 'in game'
    CONCLUDED = 'concluded'
    PAUSED = 'paused'


# Statuses that are a pure function of the player count
LOBBY_STATUSES = (GameStatus.WAITING_TO_START, GameStatus.READY)
# Statuses in which the game instance owns every transition
GAME_STATUSES = (GameStatus.IN_GAME, GameStatus.CONCLUDED, GameStatus.PAUSED)


def default_display_name(player_id: str) -> str:
    return f"Player_{player_id[:4]}"


@dataclass
class Player:
    id: str
    display_name: str

    def to_dict(self):
        return {
            'id': self.id,
            'displayName': self.display_name,
        }


@dataclass(frozen=True)
class Question:
    text: str
    options: Tuple[str, ...]
    correct_option_index: int

    def to_client(self, reveal: bool = False):
        payload = {
            'text': self.text,
            'options': list(self.options),
        }
        if reveal:
            payload['correctOptionIndex'] = self.correct_option_index
        return payload


@dataclass
class Room:
    room_id: str
    max_players: int
    min_players: int
    players: List[Player] = field(default_factory=list)
    admin_id: Optional[str] = None
    status: GameStatus = GameStatus.WAITING_TO_START
    game_type: Optional[str] = None
    game: Any = None

    def get_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def has_player(self, player_id: str) -> bool:
        return self.get_player(player_id) is not None

    def player_ids(self) -> List[str]:
        return [p.id for p in self.players]

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def derived_status(self) -> GameStatus:
        """Status implied by the player count alone."""
        if len(self.players) >= self.min_players:
            return GameStatus.READY
        return GameStatus.WAITING_TO_START

    def summary(self):
        return {
            'roomId': self.room_id,
            'status': self.status.value,
            'playerCount': len(self.players),
            'maxPlayers': self.max_players,
            'gameType': self.game_type,
        }

    def to_dict(self):
        return {
            'roomId': self.room_id,
            'players': [p.to_dict() for p in self.players],
            'adminId': self.admin_id,
            'status': self.status.value,
            'maxPlayers': self.max_players,
            'minPlayers': self.min_players,
            'gameType': self.game_type,
            'game': self.game.project_client_state() if self.game is not None else None,
        }
