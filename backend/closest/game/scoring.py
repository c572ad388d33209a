from __future__ import annotations

from .models import Room

LEFT_PLAYER_NAME = "(left)"


def closest_guessers(guesses: dict[str, float], target: float) -> list[str]:
    """Ids whose guess has the smallest absolute error, in submission order.

    Ties are all returned. Empty input gives an empty list.
    """
    if not guesses:
        return []

    errors = [(sid, abs(value - target)) for sid, value in guesses.items()]
    best = min(err for _, err in errors)
    return [sid for sid, err in errors if err == best]


def award_points(scores: dict[str, int], winners: list[str], points: int = 1) -> None:
    for sid in winners:
        scores[sid] = scores.get(sid, 0) + points


def leaderboard(room: Room) -> list[dict]:
    rows = []
    for sid, score in room.scores.items():
        player = room.players.get(sid)
        rows.append({"name": player.name if player else LEFT_PLAYER_NAME, "score": score})

    rows.sort(key=lambda r: (-r["score"], r["name"]))
    return rows
