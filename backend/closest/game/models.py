from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .scheduler import CleanupTask


Phase = Literal["idle", "choosing", "guessing", "revealed"]

# No I or O: they read like 1 and 0 on a projector.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ"
CODE_LENGTH = 4


@dataclass
class Player:
    id: str
    name: str


@dataclass
class RoundState:
    phase: Phase = "idle"
    current_turn_id: str | None = None
    is_accepting_prompt: bool = False
    prompt: str = ""
    target_value: float | None = None
    answer_text: str = ""
    # sid -> guess, in submission order
    guesses: dict[str, float] = field(default_factory=dict)
    revealed: bool = False
    last_winners: list[str] = field(default_factory=list)


@dataclass
class Room:
    code: str
    players: dict[str, Player] = field(default_factory=dict)
    host_id: str | None = None
    round: RoundState = field(default_factory=RoundState)
    scores: dict[str, int] = field(default_factory=dict)
    # Set once the room is removed from the registry; joins must not revive it.
    closed: bool = False
    cleanup_task: CleanupTask | None = field(default=None, repr=False, compare=False)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)
