from __future__ import annotations

import logging
from typing import Any

from flask import current_app, request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game import service
from ..game.errors import GameError, NotInRoom, OracleFailure, RoomNotFound
from ..game.models import Room
from ..game.registry import RoomRegistry, normalize_code
from ..oracle.answers import AnswerOracle
from .sessions import Session, SessionStore

logger = logging.getLogger(__name__)


def _field(data: Any, key: str) -> Any:
    # Clients send either the bare value or {key: value}.
    if isinstance(data, dict):
        return data.get(key)
    return data


def register_socketio_handlers(
    socketio: SocketIO,
    registry: RoomRegistry,
    sessions: SessionStore,
    oracle: AnswerOracle,
) -> None:
    def _broadcast_room(room: Room) -> None:
        socketio.emit("room:update", service.roster_state(room), to=room.code)

    def _broadcast_game_state(room: Room) -> None:
        socketio.emit("game:state", service.room_public_state(room), to=room.code)

    def _safe_broadcast(room: Room, roster: bool = False) -> None:
        try:
            if roster:
                _broadcast_room(room)
            _broadcast_game_state(room)
        except Exception:
            logger.exception("Broadcast to room %s failed", room.code)

    def _current_session() -> tuple[Session, Room]:
        session = sessions.get(request.sid)
        if session is None:
            raise NotInRoom()
        room = registry.get_room(session.code)
        if room is None:
            raise RoomNotFound()
        return session, room

    def _leave_current_room(sid: str) -> None:
        session = sessions.pop(sid)
        if session is None:
            return
        room = registry.get_room(session.code)
        if room is None:
            return

        service.leave(room, sid)
        if not room.players:
            registry.schedule_cleanup(room.code)
        else:
            _safe_broadcast(room, roster=True)

    @socketio.on("room:create")
    def room_create(data=None):
        room = registry.create_room()
        return {"ok": True, "code": room.code}

    @socketio.on("room:join")
    def room_join(data):
        payload = data or {}
        if not isinstance(payload, dict):
            return RoomNotFound().to_ack()

        code = normalize_code(payload.get("code"))
        try:
            room = registry.require_room(code)
            player = service.join(
                room,
                request.sid,
                payload.get("name"),
                request_host=payload.get("host") is True,
                name_max_len=current_app.config.get("NAME_MAX_LEN"),
            )
        except GameError as exc:
            return exc.to_ack()

        # Only leave the old room once the new one has accepted the player.
        previous = sessions.get(request.sid)
        if previous is not None and previous.code != room.code:
            leave_room(previous.code)
            _leave_current_room(request.sid)

        join_room(room.code)
        sessions.bind(request.sid, room.code)

        _safe_broadcast(room, roster=True)
        return {
            "ok": True,
            "code": room.code,
            "you": {"id": player.id, "name": player.name, "isHost": service.is_host(room, player.id)},
        }

    @socketio.on("room:leave")
    def room_leave(data=None):
        session = sessions.get(request.sid)
        if session is None:
            return NotInRoom().to_ack()

        leave_room(session.code)
        _leave_current_room(request.sid)
        return {"ok": True}

    @socketio.on("room:start")
    def room_start(data=None):
        try:
            _, room = _current_session()
        except GameError:
            return

        if not service.start_game(room, request.sid):
            return

        socketio.emit("room:started", {"code": room.code}, to=room.code)
        _safe_broadcast(room)

    @socketio.on("game:sync")
    def game_sync(data=None):
        try:
            _, room = _current_session()
        except GameError:
            return

        emit("game:state", service.room_public_state(room), to=request.sid)

    @socketio.on("game:startRound")
    def game_start_round(data=None):
        try:
            _, room = _current_session()
        except GameError:
            return

        if service.start_round(room, request.sid):
            _safe_broadcast(room)

    @socketio.on("game:nextTurn")
    def game_next_turn(data=None):
        try:
            _, room = _current_session()
        except GameError:
            return

        if service.next_turn(room, request.sid):
            _safe_broadcast(room)

    @socketio.on("game:setPrompt")
    def game_set_prompt(data):
        try:
            _, room = _current_session()
            round_state, prompt = service.begin_prompt(
                room,
                request.sid,
                _field(data, "text"),
                max_len=current_app.config.get("PROMPT_MAX_LEN"),
            )
        except GameError as exc:
            return exc.to_ack()

        _safe_broadcast(room)

        # Slow call, made without holding the room lock.
        try:
            answer = oracle.answer(prompt)
        except GameError as exc:
            failure = exc
        except Exception:
            logger.exception("Oracle crashed for room %s", room.code)
            failure = OracleFailure()
        else:
            failure = None

        if registry.get_room(room.code) is not room:
            return OracleFailure("Room closed").to_ack()

        if failure is None:
            if service.complete_prompt(room, round_state, answer.value, answer.text):
                _safe_broadcast(room)
                return {"ok": True}
            return OracleFailure("The round moved on").to_ack()

        logger.warning("Room %s: oracle gave no answer (%s)", room.code, failure.code)
        retry = current_app.config.get("PROMPT_RETRY_ON_FAILURE", True)
        if service.fail_prompt(room, round_state, failure, retry_in_place=retry):
            _safe_broadcast(room)
        return failure.to_ack()

    @socketio.on("game:guess")
    def game_guess(data):
        try:
            _, room = _current_session()
            service.submit_guess(room, request.sid, _field(data, "value"))
        except GameError as exc:
            return exc.to_ack()

        _safe_broadcast(room)
        return {"ok": True}

    @socketio.on("game:revealAndScore")
    def game_reveal_and_score(data=None):
        try:
            _, room = _current_session()
        except GameError:
            return

        if service.reveal_and_score(room, request.sid):
            _safe_broadcast(room)

    @socketio.on("disconnect")
    def on_disconnect(*args):
        _leave_current_room(request.sid)
