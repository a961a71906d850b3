"""Socket.IO event names and payload shapes."""

from __future__ import annotations

from typing import Optional, TypedDict

# Client -> server (request/ack)
CREATE_ROOM = "createRoom"
JOIN_ROOM = "joinRoom"
LEAVE_ROOM = "leaveRoom"
START_GAME = "startGame"
SET_DRAW_INTERVAL = "setDrawInterval"
PAUSE_AUTO_DRAW = "pauseAutoDraw"
RESUME_AUTO_DRAW = "resumeAutoDraw"
DECLARE_WIN = "declareWin"

# Server -> room members
PLAYERS_UPDATE = "playersUpdate"
NUMBER_DRAWN = "numberDrawn"
DRAW_INTERVAL_CHANGED = "drawIntervalChanged"
AUTO_DRAW_PAUSED = "autoDrawPaused"
AUTO_DRAW_RESUMED = "autoDrawResumed"
GAME_STARTED = "gameStarted"
GAME_ENDED = "gameEnded"
HOST_CHANGED = "hostChanged"
WIN_DECLARED = "winDeclared"
ROOM_DELETED = "roomDeleted"

# Server -> single requester
ERROR = "error"


class PlayerPayload(TypedDict):
    id: str
    name: str


class RoomSnapshot(TypedDict):
    ok: bool
    roomCode: str
    hostId: str
    players: list[PlayerPayload]
    drawn: list[int]
    gameStarted: bool
    drawIntervalMs: int
    paused: bool
    completedActions: list[str]
    completedWinners: dict[str, str]
    nextAction: Optional[str]
    autoStart: bool


class WinDeclaredPayload(TypedDict):
    action: str
    player: str
    winnerId: str
    completedActions: list[str]
    completedWinners: dict[str, str]
    nextAction: Optional[str]


class HostChangedPayload(TypedDict):
    hostId: str


class RoomDeletedPayload(TypedDict):
    roomCode: str


class ErrorPayload(TypedDict):
    error: str
    message: str


class RoomRequest(TypedDict, total=False):
    roomCode: str


class CreateRoomRequest(TypedDict, total=False):
    playerName: str
    displayName: str
    autoStart: bool


class JoinRoomRequest(TypedDict, total=False):
    roomCode: str
    playerName: str
    displayName: str


class SetDrawIntervalRequest(TypedDict, total=False):
    roomCode: str
    ms: int


class DeclareWinRequest(TypedDict, total=False):
    roomCode: str
    action: str
    pattern: str
    player: str
    displayName: str
    card: list


class Ack(TypedDict, total=False):
    ok: bool
    error: str
    message: str
    drawIntervalMs: int
