"""Quiz game variants and the factory the lobby starts them through.

Toohak runs timed rounds that every seated player answers together;
Trivia hands each player a private run of questions. ``create_game``
picks the class from a game type name.
"""
from __future__ import annotations

from .base import ActionResult, GameInstance, GameOptions, GamePhase, GameType
from .toohak import ToohakGame
from .trivia import TriviaGame

GAME_CLASSES = {
    GameType.TOOHAK: ToohakGame,
    GameType.TRIVIA: TriviaGame,
}


def create_game(game_type, room_id, broadcaster, timers, **kwargs) -> GameInstance:
    kind = GameType.parse(game_type)
    if kind is None:
        raise ValueError(f"Unknown game type: {game_type}")
    return GAME_CLASSES[kind](room_id, broadcaster, timers, **kwargs)


__all__ = [
    'ActionResult',
    'GameInstance',
    'GameOptions',
    'GamePhase',
    'GameType',
    'ToohakGame',
    'TriviaGame',
    'GAME_CLASSES',
    'create_game',
]
