"""Per-room automatic draw scheduler.

The scheduler is a small state machine (idle, running, paused, finished)
driven by a ``Timers`` implementation. Callers must hold ``room.lock`` when
calling any public method; timer callbacks take the lock themselves.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Literal

from .models import MAX_NUMBER, Room
from .timers import TimerHandle, Timers

logger = logging.getLogger(__name__)

SchedulerState = Literal["idle", "running", "paused", "finished"]


class DrawScheduler:
    def __init__(
        self,
        room: Room,
        timers: Timers,
        on_draw: Callable[[Room, int], None],
        on_exhausted: Callable[[Room], None],
        rng: random.Random | None = None,
    ) -> None:
        self.room = room
        self.timers = timers
        self.on_draw = on_draw
        self.on_exhausted = on_exhausted
        self.rng = rng or random.Random()
        self.finished = False
        self._draw_timer: TimerHandle | None = None
        self._resume_timer: TimerHandle | None = None

    @property
    def state(self) -> SchedulerState:
        if self.finished:
            return "finished"
        if self.room.paused:
            return "paused"
        if self._draw_timer is not None:
            return "running"
        return "idle"

    @property
    def running(self) -> bool:
        return self._draw_timer is not None

    @property
    def auto_resume_pending(self) -> bool:
        return self._resume_timer is not None

    def start(self) -> bool:
        if self.finished or not self.room.game_started or self._draw_timer is not None:
            return False
        logger.info("[draw-start] room=%s interval=%sms", self.room.code, self.room.draw_interval_ms)
        self._arm_draw()
        return True

    def stop(self) -> None:
        if self._draw_timer is not None:
            self._draw_timer.cancel()
            self._draw_timer = None

    def pause(self) -> None:
        self.stop()
        self.cancel_auto_resume()
        self.room.paused = True

    def resume(self) -> bool:
        self.cancel_auto_resume()
        self.room.paused = False
        if self.room.game_started:
            return self.start()
        return False

    def set_interval(self, ms: int) -> None:
        self.room.draw_interval_ms = ms
        if self._draw_timer is None:
            return
        self.stop()
        if not self.room.paused and self.room.game_started:
            self.start()

    def arm_auto_resume(self, delay_sec: float, callback: Callable[[], None]) -> None:
        self.cancel_auto_resume()
        handle_box: list[TimerHandle] = []

        def _fire() -> None:
            with self.room.lock:
                if not handle_box or self._resume_timer is not handle_box[0]:
                    return
                self._resume_timer = None
                if not self.room.paused:
                    return
                callback()

        handle = self.timers.call_later(delay_sec, _fire)
        handle_box.append(handle)
        self._resume_timer = handle

    def cancel_auto_resume(self) -> None:
        if self._resume_timer is not None:
            self._resume_timer.cancel()
            self._resume_timer = None

    def cancel_all(self) -> None:
        self.stop()
        self.cancel_auto_resume()

    def tick(self) -> int | None:
        """Draw one number. Returns it, or None when nothing was drawn."""
        if self.room.paused or self.finished:
            return None

        if len(self.room.drawn) >= MAX_NUMBER:
            self.stop()
            self.finished = True
            logger.info("[draw-exhausted] room=%s", self.room.code)
            self.on_exhausted(self.room)
            return None

        drawn = set(self.room.drawn)
        number = self.rng.randint(1, MAX_NUMBER)
        while number in drawn:
            number = self.rng.randint(1, MAX_NUMBER)

        self.room.drawn.append(number)
        self.on_draw(self.room, number)
        return number

    def _arm_draw(self) -> None:
        handle_box: list[TimerHandle] = []

        def _fire() -> None:
            with self.room.lock:
                if not handle_box or self._draw_timer is not handle_box[0]:
                    return
                self._draw_timer = None
                self.tick()
                if not self.finished and not self.room.paused and self._draw_timer is None:
                    self._arm_draw()

        handle = self.timers.call_later(self.room.draw_interval_ms / 1000.0, _fire)
        handle_box.append(handle)
        self._draw_timer = handle
