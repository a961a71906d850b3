from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .scheduler import DrawScheduler


Pattern = Literal["ambo", "terna", "quaterna", "cinquina", "tombola"]

PATTERN_ORDER: tuple[Pattern, ...] = ("ambo", "terna", "quaterna", "cinquina", "tombola")

MAX_NUMBER = 90


def next_pattern(pattern: str) -> Pattern | None:
    idx = PATTERN_ORDER.index(pattern)
    if idx + 1 < len(PATTERN_ORDER):
        return PATTERN_ORDER[idx + 1]
    return None


@dataclass
class Player:
    id: str
    name: str


@dataclass
class Room:
    code: str
    host_id: str
    players: list[Player] = field(default_factory=list)
    drawn: list[int] = field(default_factory=list)
    game_started: bool = False
    paused: bool = False
    auto_start: bool = False
    draw_interval_ms: int = 3000
    next_action: Pattern | None = "ambo"
    completed_actions: list[str] = field(default_factory=list)
    completed_winners: dict[str, str] = field(default_factory=dict)
    scheduler: DrawScheduler | None = field(default=None, repr=False, compare=False)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def find_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def has_name(self, name: str) -> bool:
        return any(p.name == name for p in self.players)

    @property
    def exhausted(self) -> bool:
        return len(self.drawn) >= MAX_NUMBER
