from __future__ import annotations

import logging
import random
from dataclasses import asdict
from typing import Any, Callable, Mapping

from ..realtime import events
from .card import Card, check_layout, check_pattern, validate_marks
from .errors import AuthorityError, NotFoundError, PreconditionError, StateError
from .models import Player, Room, next_pattern
from .registry import RoomRegistry
from .scheduler import DrawScheduler
from .timers import Timers

logger = logging.getLogger(__name__)

Emit = Callable[[str, Any, str], None]


class GameService:
    """All room mutations go through here, each under the room's lock.

    ``emit(event, data, room_code)`` delivers a broadcast to every member of
    a room; ``data`` may be None for signal-only events.
    """

    def __init__(
        self,
        timers: Timers,
        emit: Emit,
        registry: RoomRegistry | None = None,
        *,
        min_players: int = 2,
        default_interval_ms: int = 3000,
        min_interval_ms: int = 3000,
        max_interval_ms: int = 15000,
        auto_resume_sec: float = 5.0,
        max_name_length: int = 24,
        require_card: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        self.timers = timers
        self.emit = emit
        if registry is None:
            registry = RoomRegistry(default_interval_ms=default_interval_ms)
        self.registry = registry
        self.min_players = min_players
        self.default_interval_ms = default_interval_ms
        self.min_interval_ms = min_interval_ms
        self.max_interval_ms = max_interval_ms
        self.auto_resume_sec = auto_resume_sec
        self.max_name_length = max_name_length
        self.require_card = require_card
        self.rng = rng

    @classmethod
    def from_config(cls, config: Mapping[str, Any], timers: Timers, emit: Emit) -> GameService:
        registry = RoomRegistry(
            code_length=int(config.get("ROOM_CODE_LENGTH", 4)),
            default_interval_ms=int(config.get("DEFAULT_DRAW_INTERVAL_MS", 3000)),
        )
        return cls(
            timers,
            emit,
            registry,
            min_players=int(config.get("MIN_PLAYERS", 2)),
            default_interval_ms=int(config.get("DEFAULT_DRAW_INTERVAL_MS", 3000)),
            min_interval_ms=int(config.get("MIN_DRAW_INTERVAL_MS", 3000)),
            max_interval_ms=int(config.get("MAX_DRAW_INTERVAL_MS", 15000)),
            auto_resume_sec=float(config.get("AUTO_RESUME_SEC", 5)),
            max_name_length=int(config.get("MAX_NAME_LENGTH", 24)),
            require_card=bool(config.get("REQUIRE_CARD_ON_DECLARE", False)),
        )

    # -- helpers ---------------------------------------------------------

    def normalize_name(self, raw: Any) -> str:
        return str(raw or "").strip()[: self.max_name_length]

    @staticmethod
    def normalize_code(raw: Any) -> str:
        return str(raw or "").strip().upper()

    def clamp_interval(self, raw: Any) -> int:
        try:
            ms = int(round(float(raw)))
        except (TypeError, ValueError, OverflowError):
            ms = 0
        if not ms:
            ms = self.default_interval_ms
        return max(self.min_interval_ms, min(self.max_interval_ms, ms))

    def get_room(self, code: Any) -> Room | None:
        return self.registry.get_room(self.normalize_code(code))

    def _require_room(self, code: Any) -> Room:
        room = self.get_room(code)
        if room is None:
            raise NotFoundError("room_not_found", "Stanza non trovata")
        return room

    @staticmethod
    def _require_host(room: Room, requester_id: str, message: str) -> None:
        if requester_id != room.host_id:
            raise AuthorityError("only_host", message)

    def _attach_scheduler(self, room: Room) -> None:
        room.scheduler = DrawScheduler(
            room,
            self.timers,
            on_draw=self._on_draw,
            on_exhausted=self._on_exhausted,
            rng=self.rng,
        )

    def _on_draw(self, room: Room, number: int) -> None:
        logger.debug("[draw] room=%s number=%s count=%s", room.code, number, len(room.drawn))
        self.emit(events.NUMBER_DRAWN, number, room.code)

    def _on_exhausted(self, room: Room) -> None:
        logger.info("[game-ended] room=%s all numbers drawn", room.code)
        self.emit(events.GAME_ENDED, None, room.code)

    def snapshot(self, room: Room) -> events.RoomSnapshot:
        with room.lock:
            return {
                "ok": True,
                "roomCode": room.code,
                "hostId": room.host_id,
                "players": [asdict(p) for p in room.players],
                "drawn": list(room.drawn),
                "gameStarted": room.game_started,
                "drawIntervalMs": room.draw_interval_ms,
                "paused": room.paused,
                "completedActions": list(room.completed_actions),
                "completedWinners": dict(room.completed_winners),
                "nextAction": room.next_action,
                "autoStart": room.auto_start,
            }

    def broadcast_players(self, room: Room) -> None:
        with room.lock:
            self.emit(events.PLAYERS_UPDATE, [asdict(p) for p in room.players], room.code)

    # -- membership ------------------------------------------------------

    def create_room(self, player_id: str, name: Any, auto_start: bool = False) -> Room:
        return self.registry.create_room(
            player_id,
            self.normalize_name(name),
            auto_start=bool(auto_start),
            setup=self._attach_scheduler,
        )

    def join_room(self, code: Any, player_id: str, name: Any) -> Room:
        room = self._require_room(code)
        player_name = self.normalize_name(name)
        if not player_name:
            raise PreconditionError("invalid_name", "Nome non valido")

        with room.lock:
            if self.registry.get_room(room.code) is not room:
                raise NotFoundError("room_not_found", "Stanza non trovata")
            if room.find_player(player_id) is not None:
                raise PreconditionError("already_in_room", "Sei già in questa stanza")
            if room.has_name(player_name):
                raise PreconditionError("name_taken", "Nome già in uso in questa stanza")
            room.players.append(Player(id=player_id, name=player_name))

        logger.info("[room-join] room=%s player=%s name=%s", room.code, player_id, player_name)
        return room

    def leave_room(self, code: Any, player_id: str) -> None:
        room = self._require_room(code)
        self._remove_player(room, player_id)

    def disconnect(self, player_id: str) -> list[str]:
        codes = []
        for room in self.registry.find_rooms_for(player_id):
            self._remove_player(room, player_id)
            codes.append(room.code)
        return codes

    def _remove_player(self, room: Room, player_id: str) -> None:
        with room.lock:
            player = room.find_player(player_id)
            if player is None:
                return
            room.players = [p for p in room.players if p.id != player_id]
            logger.info("[room-leave] room=%s player=%s name=%s", room.code, player_id, player.name)
            self.emit(events.PLAYERS_UPDATE, [asdict(p) for p in room.players], room.code)

            if room.host_id == player_id and room.players:
                room.host_id = room.players[0].id
                logger.info("[host-change] room=%s host=%s", room.code, room.host_id)
                changed: events.HostChangedPayload = {"hostId": room.host_id}
                self.emit(events.HOST_CHANGED, changed, room.code)

                if room.scheduler is not None:
                    room.scheduler.stop()
                    if room.game_started and not room.paused:
                        room.scheduler.start()

            if not room.players:
                self.registry.destroy_room(room.code)
                deleted: events.RoomDeletedPayload = {"roomCode": room.code}
                self.emit(events.ROOM_DELETED, deleted, room.code)

    # -- game control ----------------------------------------------------

    def start_game(self, code: Any, requester_id: str) -> bool:
        room = self._require_room(code)
        with room.lock:
            self._require_host(room, requester_id, "Solo l'host può avviare la partita")
            if not room.auto_start and len(room.players) < self.min_players:
                raise PreconditionError(
                    "not_enough_players",
                    f"Servono almeno {self.min_players} giocatori per iniziare",
                )
            if room.game_started:
                logger.info("[game-start-skip] room=%s already started", room.code)
                return False

            room.game_started = True
            room.paused = False
            room.scheduler.cancel_auto_resume()
            logger.info("[game-start] room=%s players=%s", room.code, len(room.players))

            self.emit(events.AUTO_DRAW_RESUMED, None, room.code)
            self.emit(events.GAME_STARTED, None, room.code)
            room.scheduler.start()
            return True

    def set_draw_interval(self, code: Any, requester_id: str, ms: Any) -> int:
        room = self._require_room(code)
        with room.lock:
            self._require_host(room, requester_id, "Solo l'host può cambiare la velocità di estrazione")
            interval = self.clamp_interval(ms)
            room.scheduler.set_interval(interval)
            logger.info("[draw-interval] room=%s interval=%sms", room.code, interval)
            self.emit(events.DRAW_INTERVAL_CHANGED, interval, room.code)
            return interval

    def pause(self, code: Any, requester_id: str) -> None:
        room = self._require_room(code)
        with room.lock:
            self._require_host(room, requester_id, "Solo l'host può mettere in pausa l'estrazione")
            self._pause(room)
            logger.info("[draw-pause] room=%s by=%s", room.code, requester_id)

    def resume(self, code: Any, requester_id: str) -> None:
        room = self._require_room(code)
        with room.lock:
            self._require_host(room, requester_id, "Solo l'host può riavviare l'estrazione")
            self._resume(room)
            logger.info("[draw-resume] room=%s by=%s", room.code, requester_id)

    def _pause(self, room: Room) -> None:
        room.scheduler.pause()
        self.emit(events.AUTO_DRAW_PAUSED, None, room.code)

    def _resume(self, room: Room) -> None:
        if room.scheduler.finished:
            room.scheduler.cancel_auto_resume()
            room.paused = False
            return
        self.emit(events.AUTO_DRAW_RESUMED, None, room.code)
        room.scheduler.resume()

    def _auto_resume(self, room: Room) -> None:
        if self.registry.get_room(room.code) is not room:
            return
        self._resume(room)
        logger.info("[draw-auto-resume] room=%s", room.code)

    # -- declarations ----------------------------------------------------

    def declare_win(
        self,
        code: Any,
        requester_id: str,
        pattern: Any,
        player_name: Any = "",
        card: Any = None,
    ) -> events.WinDeclaredPayload:
        room = self._require_room(code)
        action = str(pattern or "").strip().lower()

        with room.lock:
            if room.next_action is None:
                raise StateError("game_over", "La partita è già terminata con la tombola")
            if action != room.next_action:
                raise PreconditionError(
                    "out_of_order",
                    f"Non puoi dichiarare {action}. La prossima azione è: {room.next_action}",
                )

            if card is not None or self.require_card:
                self._verify_card(room, action, card)

            room.completed_actions.append(action)
            room.next_action = next_pattern(action)
            room.completed_winners[action] = requester_id

            name = self.normalize_name(player_name)
            if not name:
                member = room.find_player(requester_id)
                name = member.name if member is not None else ""

            payload: events.WinDeclaredPayload = {
                "action": action,
                "player": name,
                "winnerId": requester_id,
                "completedActions": list(room.completed_actions),
                "completedWinners": dict(room.completed_winners),
                "nextAction": room.next_action,
            }
            logger.info(
                "[win] room=%s action=%s winner=%s next=%s",
                room.code, action, requester_id, room.next_action,
            )
            self.emit(events.WIN_DECLARED, payload, room.code)

            self._pause(room)
            room.scheduler.arm_auto_resume(self.auto_resume_sec, lambda: self._auto_resume(room))
            return payload

    def _verify_card(self, room: Room, action: str, raw_card: Any) -> None:
        if raw_card is None:
            raise PreconditionError("card_required", "Serve la scheda per dichiarare una vincita")
        try:
            card = Card.from_payload(raw_card)
        except ValueError as exc:
            raise PreconditionError("invalid_card", f"Scheda non valida: {exc}") from exc

        layout = check_layout(card)
        if not layout.valid:
            raise PreconditionError("invalid_card", layout.message)

        marks = validate_marks(card, room.drawn)
        if not marks.valid:
            raise PreconditionError("invalid_marks", marks.message)

        result = check_pattern(action, card, room.drawn)
        if not result.valid:
            raise PreconditionError("pattern_not_satisfied", result.message)
