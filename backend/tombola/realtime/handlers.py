from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Union

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.errors import GameError
from ..game.service import GameService
from . import events

logger = logging.getLogger(__name__)


def _room_code(data: Union[events.RoomRequest, str, None]) -> str:
    # Control events accept either a bare code string or {"roomCode": ...}.
    if isinstance(data, dict):
        return str(data.get("roomCode", "")).strip().upper()
    return str(data or "").strip().upper()


def _as_dict(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def _display_name(payload: dict, *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if value:
            return str(value)
    return ""


def _reply_error(exc: GameError) -> events.Ack:
    logger.info("[rejected] sid=%s error=%s message=%s", request.sid, exc.code, exc.message)
    emit(events.ERROR, exc.to_notice(), to=request.sid)
    return exc.to_payload()


def _guarded(fn: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(fn)
    def wrapper(data=None):
        try:
            return fn(data)
        except GameError as exc:
            return _reply_error(exc)

    return wrapper


def register_socketio_handlers(socketio: SocketIO, service: GameService) -> None:
    @socketio.on(events.CREATE_ROOM)
    @_guarded
    def create_room(data) -> events.RoomSnapshot:
        payload: events.CreateRoomRequest = data if isinstance(data, dict) else {"playerName": str(data or "")}
        name = _display_name(payload, "playerName", "displayName")

        room = service.create_room(request.sid, name, auto_start=bool(payload.get("autoStart", False)))
        join_room(room.code)
        service.broadcast_players(room)
        return service.snapshot(room)

    @socketio.on(events.JOIN_ROOM)
    @_guarded
    def join_room_event(data) -> events.RoomSnapshot:
        payload: events.JoinRoomRequest = _as_dict(data)
        name = _display_name(payload, "playerName", "displayName")

        room = service.join_room(_room_code(payload), request.sid, name)
        join_room(room.code)
        service.broadcast_players(room)
        return service.snapshot(room)

    @socketio.on(events.LEAVE_ROOM)
    @_guarded
    def leave_room_event(data) -> events.Ack:
        room_code = _room_code(data)
        service.leave_room(room_code, request.sid)
        leave_room(room_code)
        return {"ok": True}

    @socketio.on(events.START_GAME)
    @_guarded
    def start_game(data) -> events.Ack:
        service.start_game(_room_code(data), request.sid)
        return {"ok": True}

    @socketio.on(events.SET_DRAW_INTERVAL)
    @_guarded
    def set_draw_interval(data) -> events.Ack:
        payload: events.SetDrawIntervalRequest = _as_dict(data)
        interval = service.set_draw_interval(_room_code(payload), request.sid, payload.get("ms"))
        return {"ok": True, "drawIntervalMs": interval}

    @socketio.on(events.PAUSE_AUTO_DRAW)
    @_guarded
    def pause_auto_draw(data) -> events.Ack:
        service.pause(_room_code(data), request.sid)
        return {"ok": True}

    @socketio.on(events.RESUME_AUTO_DRAW)
    @_guarded
    def resume_auto_draw(data) -> events.Ack:
        service.resume(_room_code(data), request.sid)
        return {"ok": True}

    @socketio.on(events.DECLARE_WIN)
    @_guarded
    def declare_win(data) -> dict:
        payload: events.DeclareWinRequest = _as_dict(data)
        action = payload.get("action") or payload.get("pattern")
        player = _display_name(payload, "player", "displayName", "playerName")

        result = service.declare_win(
            _room_code(payload),
            request.sid,
            action,
            player_name=player,
            card=payload.get("card"),
        )
        return {"ok": True, **result}

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        codes = service.disconnect(request.sid)
        if codes:
            logger.info("[disconnect] sid=%s rooms=%s reason=%s", request.sid, ",".join(codes), reason)
