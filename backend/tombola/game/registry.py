from __future__ import annotations

import logging
import random
import string
from threading import RLock
from typing import Callable

from .models import Player, Room

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


class RoomRegistry:
    """Process-wide mapping from room code to Room."""

    def __init__(
        self,
        code_length: int = 4,
        default_interval_ms: int = 3000,
        rng: random.Random | None = None,
    ) -> None:
        self.code_length = code_length
        self.default_interval_ms = default_interval_ms
        self._rng = rng or random.Random()
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        with self._lock:
            return code in self._rooms

    def generate_code(self) -> str:
        return "".join(self._rng.choice(CODE_ALPHABET) for _ in range(self.code_length))

    def create_room(
        self,
        host_id: str,
        host_name: str,
        auto_start: bool = False,
        setup: Callable[[Room], None] | None = None,
    ) -> Room:
        with self._lock:
            code = self.generate_code()
            while code in self._rooms:
                code = self.generate_code()

            room = Room(
                code=code,
                host_id=host_id,
                players=[Player(id=host_id, name=host_name)],
                auto_start=auto_start,
                draw_interval_ms=self.default_interval_ms,
            )
            if setup is not None:
                setup(room)
            self._rooms[code] = room
            logger.info("[room-create] room=%s host=%s name=%s", code, host_id, host_name)
            return room

    def get_room(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(code)

    def destroy_room(self, code: str) -> bool:
        with self._lock:
            room = self._rooms.pop(code, None)
        if room is None:
            return False
        with room.lock:
            if room.scheduler is not None:
                room.scheduler.cancel_all()
        logger.info("[room-delete] room=%s", code)
        return True

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def find_rooms_for(self, player_id: str) -> list[Room]:
        return [r for r in self.list_rooms() if r.find_player(player_id) is not None]
