from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Protocol

_NUMBER_RE = re.compile(r"-?\d+(\.\d+)?")


@dataclass(frozen=True)
class OracleAnswer:
    value: float
    text: str


class AnswerOracle(Protocol):
    def answer(self, prompt: str) -> OracleAnswer:
        """Return a numeric answer or raise OracleFailure / NoNumericAnswer."""
        ...


def extract_first_number(text: str | None) -> float | None:
    """First number in free text; thousands separators are ignored."""
    if not text:
        return None
    m = _NUMBER_RE.search(str(text).replace(",", ""))
    if not m:
        return None
    return float(m.group(0))


class MockOracle:
    """Development stand-in that answers every question with a small number."""

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def answer(self, prompt: str) -> OracleAnswer:
        n = self._rng.randint(1, 50)
        return OracleAnswer(value=float(n), text=f"Answer: {n}")


def build_oracle(config) -> AnswerOracle:
    backend = str(config.get("ORACLE_BACKEND", "mock")).strip().lower()
    if backend == "mock":
        return MockOracle()
    if backend == "openai":
        from .chat import ChatCompletionOracle

        return ChatCompletionOracle(
            api_url=config.get("ORACLE_API_URL"),
            api_key=config.get("ORACLE_API_KEY", ""),
            model=config.get("ORACLE_MODEL"),
            timeout_sec=float(config.get("ORACLE_TIMEOUT_SEC", 20)),
        )
    raise ValueError(f"Unknown ORACLE_BACKEND: {backend!r}")
