from __future__ import annotations

import logging
import random
from functools import partial, wraps
from typing import Any, Dict, List, Optional

from quizhub.broadcast import Broadcaster
from quizhub.exceptions import InvariantViolation
from quizhub.models import (
    GAME_STATUSES,
    LOBBY_STATUSES,
    GameStatus,
    Player,
    Room,
    default_display_name,
)
from quizhub.services.games import GameType, create_game
from quizhub.services.games.base import NOT_IN_PROGRESS
from quizhub.services.games.questions import QUESTION_BANK
from .outcomes import Outcome, Reason
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


def serialized(method):
    """Run a Lobby operation under the registry lock.

    An InvariantViolation aborts the operation; it is logged and reported
    to the caller as an internal error instead of crashing the handler.
    """

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.registry.lock:
            try:
                return method(self, *args, **kwargs)
            except InvariantViolation:
                logger.exception(f"[invariant] {method.__name__} aborted")
                return Outcome.rejected(Reason.INTERNAL_ERROR, "Internal error, the operation was aborted.")

    return wrapper


class Lobby:
    """Player lifecycle for every room: join, leave, kick, admin hand-off.

    The Lobby owns each room's player list and its lobby status. Once a
    game is started the status is driven by the game (in game, concluded)
    and the Lobby only forwards actions and departures to it.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        broadcaster: Broadcaster,
        timers,
        *,
        min_players: int = 2,
        max_players: int = 4,
        default_game_type: GameType = GameType.TOOHAK,
        game_options: Optional[Dict[str, Any]] = None,
        auto_start: bool = True,
        chat_max_length: int = 500,
        bank=QUESTION_BANK,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry
        self.broadcaster = broadcaster
        self.timers = timers
        self.min_players = min_players
        self.max_players = max(max_players, min_players)
        self.default_game_type = default_game_type
        self.game_options = dict(game_options or {})
        self.auto_start = auto_start
        self.chat_max_length = chat_max_length
        self.bank = bank
        self.rng = rng

    @classmethod
    def from_config(cls, config, registry, broadcaster, timers, **kwargs) -> 'Lobby':
        game_type = GameType.parse(config.get('DEFAULT_GAME_TYPE')) or GameType.TOOHAK
        options = {
            'number_of_questions': config.get('TOOHAK_QUESTION_COUNT'),
            'round_time_ms': config.get('TOOHAK_ROUND_TIME_MS'),
            'settle_delay_ms': config.get('TOOHAK_SETTLE_DELAY_MS'),
            'questions_per_player': config.get('TRIVIA_QUESTIONS_PER_PLAYER'),
            'departure_policy': config.get('DEPARTURE_POLICY'),
        }
        return cls(
            registry,
            broadcaster,
            timers,
            min_players=config.get('MIN_PLAYERS', 2),
            max_players=config.get('MAX_PLAYERS', 4),
            default_game_type=game_type,
            game_options={k: v for k, v in options.items() if v is not None},
            auto_start=config.get('AUTO_START_CYCLE', True),
            chat_max_length=config.get('CHAT_MAX_LENGTH', 500),
            **kwargs,
        )

    # ---- membership ----

    @serialized
    def join_or_create(self, room_id, player_id, display_name=None, max_players_hint=None) -> Outcome:
        room_id = room_id.strip() if isinstance(room_id, str) else ''
        if not room_id:
            return Outcome.rejected(Reason.INVALID_PAYLOAD, "Invalid room ID provided.")
        name = display_name.strip() if isinstance(display_name, str) else ''
        player = Player(id=player_id, display_name=name or default_display_name(player_id))

        room = self.registry.get(room_id)
        if room is None:
            room = self._create_room(room_id, player, max_players_hint)
            self._check_invariants(room)
            return Outcome.ok(f'Room "{room_id}" created and joined successfully.', data=room.to_dict())

        if room.has_player(player_id):
            # Reconnect or duplicate click: resubscribe, change nothing
            self.broadcaster.subscribe(player_id, room_id)
            return Outcome.already_satisfied(f'You are already in room "{room_id}".', data=room.to_dict())
        if room.is_full:
            return Outcome.rejected(
                Reason.ROOM_FULL, f'Room "{room_id}" is full ({room.max_players} players max).'
            )
        if room.status in GAME_STATUSES:
            return Outcome.rejected(
                Reason.GAME_IN_PROGRESS, f'Cannot join room "{room_id}", game is {room.status.value}.'
            )

        room.players.append(player)
        self.broadcaster.subscribe(player_id, room_id)
        self.broadcaster.to_room(
            room_id, 'playerJoined', {'roomId': room_id, 'player': player.to_dict()}, skip=player_id
        )
        logger.info(f"[join] room={room_id} player={player_id} count={len(room.players)}/{room.max_players}")
        self._refresh_status(room)
        self._check_invariants(room)
        return Outcome.ok(f'Joined room "{room_id}" successfully.', data=room.to_dict())

    def _create_room(self, room_id: str, creator: Player, max_players_hint) -> Room:
        max_players = self.max_players
        if isinstance(max_players_hint, int) and not isinstance(max_players_hint, bool) and max_players_hint > 0:
            max_players = max_players_hint
        room = Room(
            room_id=room_id,
            max_players=max(max_players, self.min_players),
            min_players=self.min_players,
            players=[creator],
            admin_id=creator.id,
        )
        room.status = room.derived_status()
        if not self.registry.add(room):
            raise InvariantViolation(f"room {room_id} appeared while creating it")
        self.broadcaster.subscribe(creator.id, room_id)
        logger.info(f"[room-create] room={room_id} admin={creator.id} max={room.max_players}")
        return room

    @serialized
    def leave(self, room_id, player_id) -> Outcome:
        room = self.registry.get(room_id)
        if room is None:
            return Outcome.not_found(Reason.ROOM_NOT_FOUND, f'Room "{room_id}" does not exist.')
        player = room.get_player(player_id)
        if player is None:
            return Outcome.not_found(Reason.NOT_IN_ROOM, f'You are not in room "{room_id}".')

        game_running = room.game is not None and room.status in (GameStatus.IN_GAME, GameStatus.PAUSED)
        room.players.remove(player)
        self.broadcaster.unsubscribe(player_id, room_id)
        logger.info(f"[leave] room={room_id} player={player_id} remaining={len(room.players)}")

        if not room.players:
            # Nobody is left to notify
            self.registry.delete(room_id)
            if room.game is not None:
                room.game.conclude("All players left.", silent=True)
            return Outcome.ok(f'Successfully left room "{room_id}".')

        self.broadcaster.to_room(room_id, 'playerLeft', {
            'roomId': room_id,
            'playerId': player_id,
            'displayName': player.display_name,
        })
        if room.admin_id == player_id:
            self._hand_off_admin(room)
        self._refresh_status(room)
        if game_running:
            room.game.handle_player_departure(player_id)
        self._check_invariants(room)
        return Outcome.ok(f'Successfully left room "{room_id}".')

    def _hand_off_admin(self, room: Room) -> None:
        # Earliest remaining joiner inherits the room
        new_admin = room.players[0]
        room.admin_id = new_admin.id
        if room.game is not None:
            room.game.admin_ids = [new_admin.id]
        self.broadcaster.to_room(room.room_id, 'newAdmin', {
            'roomId': room.room_id,
            'newAdminId': new_admin.id,
            'newAdminUsername': new_admin.display_name,
        })
        logger.info(f"[admin] room={room.room_id} new admin={new_admin.id}")

    @serialized
    def kick(self, room_id, requester_id, target_id) -> Outcome:
        room = self.registry.get(room_id)
        if room is None:
            return Outcome.not_found(Reason.ROOM_NOT_FOUND, f'Room "{room_id}" does not exist.')
        if room.admin_id != requester_id:
            return Outcome.rejected(Reason.NOT_ADMIN, "Only the room admin can kick players.")
        if target_id == requester_id:
            return Outcome.rejected(Reason.INVALID_PAYLOAD, "You cannot kick yourself.")
        if not room.has_player(target_id):
            return Outcome.not_found(Reason.NOT_IN_ROOM, f'Player "{target_id}" is not in room "{room_id}".')

        self.broadcaster.to_player(target_id, 'kicked', {
            'roomId': room_id,
            'message': f'You were removed from room "{room_id}" by the admin.',
        })
        outcome = self.leave(room_id, target_id)
        if not outcome.success:
            return outcome
        logger.info(f"[kick] room={room_id} admin={requester_id} target={target_id}")
        return Outcome.ok(f'Player "{target_id}" was kicked from room "{room_id}".', data=room.to_dict())

    def disconnect(self, player_id) -> List[Outcome]:
        """A dropped connection is treated as leaving every room it was in."""
        with self.registry.lock:
            rooms = self.registry.find_by_player_id(player_id)
            if not rooms:
                logger.info(f"[disconnect] player={player_id} was not in any room")
            return [self.leave(room.room_id, player_id) for room in rooms]

    # ---- game control ----

    @serialized
    def start_game(self, room_id, requester_id, game_type=None, options=None) -> Outcome:
        room = self.registry.get(room_id)
        if room is None:
            return Outcome.not_found(Reason.ROOM_NOT_FOUND, f'Room "{room_id}" does not exist.')
        if room.admin_id != requester_id:
            return Outcome.rejected(Reason.NOT_ADMIN, "Only the room admin can start the game.")
        if room.status is not GameStatus.READY:
            return Outcome.rejected(
                Reason.INVALID_STATE,
                f'Game cannot be started. State is "{room.status.value}" (must be "ready").',
            )
        kind = GameType.parse(game_type) if game_type is not None else self.default_game_type
        if kind is None:
            return Outcome.rejected(Reason.UNKNOWN_GAME_TYPE, f'Unknown game type "{game_type}".')

        game = create_game(
            kind,
            room_id,
            self.broadcaster,
            self.timers,
            bank=self.bank,
            rng=self.rng,
            on_concluded=partial(self._on_game_concluded, room_id),
        )
        merged = dict(self.game_options)
        merged.update(options or {})
        merged['admin_ids'] = [room.admin_id]
        merged['min_players'] = room.min_players
        game.initialize(list(room.players), merged)

        room.game = game
        room.game_type = kind.value
        room.status = GameStatus.IN_GAME
        logger.info(f"[game-start] room={room_id} type={kind.value} players={room.player_ids()}")
        self._announce_status(room)
        if self.auto_start:
            game.start_cycle()
        return Outcome.ok(f'Game started in room "{room_id}".', data=room.to_dict())

    @serialized
    def start_questions(self, room_id, requester_id) -> Outcome:
        room = self.registry.get(room_id)
        if room is None:
            return Outcome.not_found(Reason.ROOM_NOT_FOUND, f'Room "{room_id}" does not exist.')
        if room.admin_id != requester_id:
            return Outcome.rejected(Reason.NOT_ADMIN, "Only the room admin can start the questions.")
        if room.game is None or room.status is not GameStatus.IN_GAME:
            return Outcome.rejected(Reason.INVALID_STATE, "No game is running in this room.")
        if not room.game.start_cycle():
            return Outcome.rejected(Reason.INVALID_STATE, "The question cycle has already started.")
        return Outcome.ok("Question cycle started.", data=room.game.project_client_state())

    @serialized
    def submit_action(self, room_id, player_id, action) -> Outcome:
        room = self.registry.get(room_id)
        if room is None:
            return Outcome.not_found(Reason.ROOM_NOT_FOUND, f'Room "{room_id}" does not exist.')
        if not room.has_player(player_id):
            return Outcome.not_found(Reason.NOT_IN_ROOM, f'You are not in room "{room_id}".')
        if room.game is None:
            return Outcome.rejected(Reason.INVALID_STATE, NOT_IN_PROGRESS)
        result = room.game.handle_player_action(player_id, action)
        if not result.accepted:
            logger.info(f"[action] room={room_id} player={player_id} rejected: {result.reason}")
            return Outcome.rejected(Reason.ACTION_REJECTED, result.reason)
        return Outcome.ok(result.reason or "Action accepted.", data=result.data)

    def _on_game_concluded(self, room_id: str, reason: str) -> None:
        room = self.registry.get(room_id)
        if room is None or room.status is GameStatus.CONCLUDED:
            return
        room.status = GameStatus.CONCLUDED
        logger.info(f"[room-status] room={room_id} concluded ({reason})")
        self._announce_status(room)

    # ---- chat and views ----

    @serialized
    def send_message(self, room_id, player_id, text) -> Outcome:
        text = text.strip() if isinstance(text, str) else ''
        if not text:
            return Outcome.rejected(Reason.INVALID_PAYLOAD, "Cannot send an empty message.")
        if len(text) > self.chat_max_length:
            return Outcome.rejected(
                Reason.INVALID_PAYLOAD, f"Message is too long (max {self.chat_max_length} characters)."
            )
        room = self.registry.get(room_id)
        if room is None:
            return Outcome.not_found(Reason.ROOM_NOT_FOUND, f'Room "{room_id}" does not exist.')
        player = room.get_player(player_id)
        if player is None:
            return Outcome.not_found(Reason.NOT_IN_ROOM, f'You are not in room "{room_id}".')
        if room.status is GameStatus.CONCLUDED:
            return Outcome.rejected(Reason.INVALID_STATE, "Chat is closed, the game has concluded.")
        self.broadcaster.to_room(room_id, 'message', {
            'roomId': room_id,
            'player': player.to_dict(),
            'message': text,
        })
        return Outcome.ok("Message sent.")

    def room_state(self, room_id) -> Optional[Dict[str, Any]]:
        with self.registry.lock:
            room = self.registry.get(room_id)
            return room.to_dict() if room is not None else None

    def room_summaries(self) -> List[Dict[str, Any]]:
        with self.registry.lock:
            return [room.summary() for room in self.registry.list_rooms()]

    # ---- status ----

    def _refresh_status(self, room: Room) -> Optional[GameStatus]:
        if room.status not in LOBBY_STATUSES:
            return None
        new_status = room.derived_status()
        if new_status is room.status:
            return None
        room.status = new_status
        self._announce_status(room)
        return new_status

    def _announce_status(self, room: Room) -> None:
        logger.info(f"[room-status] room={room.room_id} status={room.status.value}")
        self.broadcaster.to_room(room.room_id, 'gameStateChanged', {
            'roomId': room.room_id,
            'newState': room.status.value,
        })

    def _check_invariants(self, room: Room) -> None:
        if not room.players:
            raise InvariantViolation(f"room {room.room_id} is registered with no players")
        if not room.has_player(room.admin_id):
            raise InvariantViolation(f"admin {room.admin_id} of room {room.room_id} is not a member")
        if len(room.players) > room.max_players:
            raise InvariantViolation(f"room {room.room_id} holds more than {room.max_players} players")
        ids = room.player_ids()
        if len(ids) != len(set(ids)):
            raise InvariantViolation(f"room {room.room_id} lists a player twice")
