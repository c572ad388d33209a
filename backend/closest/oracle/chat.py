from __future__ import annotations

import logging

import httpx

from ..game.errors import NoNumericAnswer, OracleFailure
from .answers import OracleAnswer, extract_first_number

logger = logging.getLogger(__name__)

NUMERIC_SYSTEM_PROMPT = (
    "You answer trivia and estimation questions for a party game. "
    "Reply with a single number only: no units, no words, no ranges."
)

CLARIFY_TEMPLATE = (
    "{prompt}\n\n"
    "If you are not sure, give your best single numeric estimate. "
    "Reply with just the number."
)


class ChatCompletionOracle:
    """Asks an OpenAI-compatible ``/chat/completions`` endpoint for a number.

    Tries three times before giving up: the question as-is under a strict
    system prompt, a rephrasing that asks for a best estimate, and finally the
    bare question with the first number pulled out of the free-text reply.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        timeout_sec: float = 20.0,
        client: httpx.Client | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_sec, connect=5.0))

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _attempts(self, prompt: str) -> list[list[dict]]:
        return [
            [
                {"role": "system", "content": NUMERIC_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            [
                {"role": "system", "content": NUMERIC_SYSTEM_PROMPT},
                {"role": "user", "content": CLARIFY_TEMPLATE.format(prompt=prompt)},
            ],
            [
                {"role": "user", "content": prompt},
            ],
        ]

    def _complete(self, messages: list[dict]) -> str:
        resp = self._client.post(
            f"{self.api_url}/chat/completions",
            headers=self._headers(),
            json={"model": self.model, "messages": messages, "temperature": 0},
        )
        resp.raise_for_status()
        data = resp.json()
        return str(data["choices"][0]["message"]["content"] or "").strip()

    def answer(self, prompt: str) -> OracleAnswer:
        last_text = ""
        last_error: Exception | None = None

        for attempt, messages in enumerate(self._attempts(prompt), start=1):
            try:
                text = self._complete(messages)
            except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
                logger.warning("Oracle attempt %d failed: %s", attempt, exc)
                last_error = exc
                continue

            value = extract_first_number(text)
            if value is not None:
                return OracleAnswer(value=value, text=text)

            logger.info("Oracle attempt %d gave no number: %r", attempt, text[:80])
            last_text = text

        if last_text:
            raise NoNumericAnswer(answer_text=last_text)
        raise OracleFailure() from last_error
