from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from flask_socketio import SocketIO

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Timers(Protocol):
    def call_later(self, delay_sec: float, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


class SocketIOTimers:
    """Run delayed callbacks as Socket.IO background tasks.

    Works under both eventlet and threading async modes because it only uses
    ``socketio.sleep`` and ``socketio.start_background_task``.
    """

    def __init__(self, socketio: SocketIO) -> None:
        self.socketio = socketio

    def call_later(self, delay_sec: float, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        handle = TimerHandle()

        def _runner() -> None:
            self.socketio.sleep(delay_sec)
            if handle.cancelled:
                return
            try:
                fn(*args)
            except Exception:
                logger.exception("[timer-error] callback %r failed", fn)

        self.socketio.start_background_task(_runner)
        return handle
