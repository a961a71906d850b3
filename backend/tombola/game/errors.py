from __future__ import annotations

from ..realtime.events import Ack, ErrorPayload


class GameError(Exception):
    """Base for errors reported back to the single requesting client."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message or code

    def to_notice(self) -> ErrorPayload:
        return {"error": self.code, "message": self.message}

    def to_payload(self) -> Ack:
        return {"ok": False, "error": self.code, "message": self.message}


class NotFoundError(GameError):
    """Room (or code) does not exist."""


class AuthorityError(GameError):
    """Requester is not the room host."""


class PreconditionError(GameError):
    """Too few players, out-of-order declaration or malformed input."""


class StateError(GameError):
    """Operation on a room that already reached a terminal state."""
