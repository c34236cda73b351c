from __future__ import annotations

import logging
from threading import RLock
from typing import Dict, List, Optional

from quizhub.models import Room

logger = logging.getLogger(__name__)


class RoomRegistry:
    """In-memory map of room id to Room.

    The registry also owns the lock that serializes every mutation of the
    rooms it holds, including timer callbacks fired by running games.
    """

    def __init__(self):
        self.lock = RLock()
        self._rooms: Dict[str, Room] = {}

    def get(self, room_id: str) -> Optional[Room]:
        with self.lock:
            return self._rooms.get(room_id)

    def add(self, room: Room) -> bool:
        with self.lock:
            if room.room_id in self._rooms:
                logger.warning(f"[room-add] room={room.room_id} already exists, keeping the first one")
                return False
            self._rooms[room.room_id] = room
            logger.info(f"[room-add] room={room.room_id} total={len(self._rooms)}")
            return True

    def delete(self, room_id: str) -> bool:
        with self.lock:
            if room_id not in self._rooms:
                return False
            del self._rooms[room_id]
            logger.info(f"[room-delete] room={room_id} total={len(self._rooms)}")
            return True

    def list_rooms(self) -> List[Room]:
        with self.lock:
            return list(self._rooms.values())

    def find_by_player_id(self, player_id: str) -> List[Room]:
        # A player is normally seated in one room, but nothing here relies on it.
        with self.lock:
            return [r for r in self._rooms.values() if r.has_player(player_id)]

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return room_id in self._rooms
