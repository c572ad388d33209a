from __future__ import annotations

import logging
import math
import random
from typing import Any

from ..config import Config
from .errors import (
    EmptyPrompt,
    GameError,
    InvalidGuess,
    InvalidName,
    NoNumericAnswer,
    NotAcceptingGuesses,
    NotInRoom,
    NotYourTurn,
    RoomNotFound,
)
from .models import Player, Room, RoundState
from .scoring import award_points, closest_guessers, leaderboard

logger = logging.getLogger(__name__)

GUESSING_PLACEHOLDER = "Answer locked. Guess now!"
NO_NUMBER_PLACEHOLDER = "No numeric answer found."
ORACLE_ERROR_PLACEHOLDER = "Error fetching answer."
UNKNOWN_PLAYER_NAME = "Player"


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


def validate_name(name: Any, max_len: int | None = None) -> str:
    n = str(name or "").strip()
    if not n:
        raise InvalidName()
    if len(n) > (max_len or Config.NAME_MAX_LEN):
        raise InvalidName("Name is too long")
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise InvalidName("Name contains invalid characters")
    for ch in n:
        if ord(ch) < 32:
            raise InvalidName("Name contains invalid characters")
    return n


def join(room: Room, sid: str, name: Any, request_host: bool = False, name_max_len: int | None = None) -> Player:
    """Add (or rename) a player.

    The caller becomes host when the room has none, or when it explicitly asks
    for it; the latter deliberately takes host away from whoever holds it.
    """
    clean_name = validate_name(name, name_max_len)

    with room.lock:
        if room.closed:
            raise RoomNotFound()

        player = room.players.get(sid)
        if player is None:
            player = Player(id=sid, name=clean_name)
            room.players[sid] = player
        else:
            player.name = clean_name

        # Any join cancels a pending empty-room deletion.
        if room.cleanup_task is not None:
            room.cleanup_task.cancel()
            room.cleanup_task = None

        if room.host_id is None or request_host:
            if room.host_id != sid:
                logger.info("Room %s: host is now %s", room.code, sid)
            room.host_id = sid

        return player


def leave(room: Room, sid: str) -> bool:
    """Remove a player. Returns False if the sid was not on the roster.

    Scores are kept under the departed id so the leaderboard still shows them.
    """
    with room.lock:
        if sid not in room.players:
            return False
        del room.players[sid]

        if room.host_id == sid:
            room.host_id = next(iter(room.players), None)
            logger.info("Room %s: host left, host is now %s", room.code, room.host_id)

        g = room.round
        if g.current_turn_id == sid:
            g.current_turn_id = None
            g.is_accepting_prompt = False

        return True


def is_host(room: Room, sid: str) -> bool:
    return room.host_id is not None and room.host_id == sid


# ---------------------------------------------------------------------------
# Round lifecycle
# ---------------------------------------------------------------------------


def start_game(room: Room, sid: str) -> bool:
    """Host returns everyone to the lobby. Scores are kept."""
    with room.lock:
        if not is_host(room, sid):
            return False
        room.round = RoundState()
        return True


def _pick_chooser(room: Room, rng: random.Random | None = None) -> str | None:
    ids = list(room.players)
    if not ids:
        return None
    return (rng or random).choice(ids)


def start_round(room: Room, sid: str, rng: random.Random | None = None) -> bool:
    with room.lock:
        if not is_host(room, sid):
            return False

        chooser = _pick_chooser(room, rng)
        room.round = RoundState(
            phase="choosing",
            current_turn_id=chooser,
            is_accepting_prompt=chooser is not None,
        )
        return True


def next_turn(room: Room, sid: str, rng: random.Random | None = None) -> bool:
    return start_round(room, sid, rng=rng)


def begin_prompt(room: Room, sid: str, text: Any, max_len: int | None = None) -> tuple[RoundState, str]:
    """Accept the chooser's prompt and close the prompt window.

    Returns the round the prompt belongs to; hand it back to
    ``complete_prompt``/``fail_prompt`` once the oracle has answered.
    """
    with room.lock:
        g = room.round
        if not g.is_accepting_prompt or g.current_turn_id != sid:
            raise NotYourTurn()

        prompt = str(text or "").strip()[: max_len or Config.PROMPT_MAX_LEN]
        if not prompt:
            raise EmptyPrompt()

        g.prompt = prompt
        g.is_accepting_prompt = False
        return g, prompt


def _is_current_choosing_round(room: Room, g: RoundState) -> bool:
    # The round may have been replaced (next turn, back to lobby) while the
    # oracle was busy.
    return room.round is g and g.phase == "choosing"


def complete_prompt(room: Room, g: RoundState, value: float, text: str) -> bool:
    with room.lock:
        if not _is_current_choosing_round(room, g):
            logger.info("Room %s: dropping stale oracle answer", room.code)
            return False

        g.target_value = value
        g.answer_text = text
        g.phase = "guessing"
        g.guesses.clear()
        g.revealed = False
        return True


def fail_prompt(room: Room, g: RoundState, error: GameError, retry_in_place: bool = True) -> bool:
    with room.lock:
        if not _is_current_choosing_round(room, g):
            return False

        if isinstance(error, NoNumericAnswer):
            g.answer_text = error.answer_text or NO_NUMBER_PLACEHOLDER
        else:
            g.answer_text = ORACLE_ERROR_PLACEHOLDER

        if retry_in_place and g.current_turn_id in room.players:
            g.is_accepting_prompt = True
        return True


def parse_guess(value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidGuess()

    if isinstance(value, (int, float)):
        try:
            v = float(value)
        except OverflowError:
            raise InvalidGuess()
    elif isinstance(value, str):
        try:
            v = float(value.strip())
        except (ValueError, OverflowError):
            raise InvalidGuess()
    else:
        raise InvalidGuess()

    if not math.isfinite(v):
        raise InvalidGuess()
    return v


def submit_guess(room: Room, sid: str, value: Any) -> float:
    with room.lock:
        if room.round.phase != "guessing":
            raise NotAcceptingGuesses()
        if sid not in room.players:
            raise NotInRoom()

        v = parse_guess(value)
        room.round.guesses[sid] = v
        return v


def reveal_and_score(room: Room, sid: str) -> bool:
    with room.lock:
        if not is_host(room, sid):
            return False

        g = room.round
        if g.phase != "guessing":
            return False

        winners = closest_guessers(g.guesses, g.target_value) if g.target_value is not None else []
        award_points(room.scores, winners)

        g.phase = "revealed"
        g.revealed = True
        g.last_winners = winners
        return True


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


def _number(v: float | None) -> int | float | None:
    if v is None:
        return None
    if float(v).is_integer():
        return int(v)
    return v


def _player_name(room: Room, sid: str) -> str:
    player = room.players.get(sid)
    return player.name if player else UNKNOWN_PLAYER_NAME


def roster_state(room: Room) -> dict:
    with room.lock:
        players = [{"id": p.id, "name": p.name, "isHost": p.id == room.host_id} for p in room.players.values()]
        return {"code": room.code, "players": players}


def room_public_state(room: Room) -> dict:
    """Full game snapshot sent to every member.

    The target and the model's answer stay hidden until the reveal, and so do
    the guess values: before that, only who has guessed is visible.
    """
    with room.lock:
        g = room.round

        if g.revealed:
            answer_text = g.answer_text
        elif g.phase == "guessing":
            answer_text = GUESSING_PLACEHOLDER
        else:
            answer_text = ""

        guesses_by_name = {
            _player_name(room, sid): (_number(value) if g.revealed else None)
            for sid, value in g.guesses.items()
        }

        return {
            "code": room.code,
            "players": roster_state(room)["players"],
            "phase": g.phase,
            "currentTurnId": g.current_turn_id,
            "isAcceptingPrompt": g.is_accepting_prompt,
            "prompt": g.prompt,
            "targetValue": _number(g.target_value) if g.revealed else None,
            "answerText": answer_text,
            "guessesByName": guesses_by_name,
            "guessCount": len(g.guesses),
            "revealed": g.revealed,
            "leaderboard": leaderboard(room),
            "lastWinners": [_player_name(room, sid) for sid in g.last_winners],
        }
