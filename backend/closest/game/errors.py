from __future__ import annotations


class GameError(Exception):
    """Caller-facing failure, reported through the acknowledgement of the event."""

    code = "game_error"
    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)

    def to_ack(self) -> dict:
        return {"ok": False, "error": self.code, "reason": self.message}


class RoomNotFound(GameError):
    code = "room_not_found"
    message = "Room not found"


class InvalidName(GameError):
    code = "invalid_name"
    message = "Name required"


class NotInRoom(GameError):
    code = "not_in_room"
    message = "Join the room first"


class NotYourTurn(GameError):
    code = "not_your_turn"
    message = "Not your turn"


class EmptyPrompt(GameError):
    code = "empty_prompt"
    message = "Prompt is empty"


class NotAcceptingGuesses(GameError):
    code = "not_accepting_guesses"
    message = "Not accepting guesses"


class InvalidGuess(GameError):
    code = "invalid_guess"
    message = "Guess must be a number"


class OracleFailure(GameError):
    code = "oracle_failure"
    message = "Error fetching answer."


class NoNumericAnswer(GameError):
    code = "no_numeric_answer"
    message = "Could not find a numeric value in the answer."

    def __init__(self, message: str | None = None, answer_text: str = ""):
        self.answer_text = answer_text
        super().__init__(message)
