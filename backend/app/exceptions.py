from typing import Optional
from fastapi import HTTPException

# Shown to partners whenever the mediator cannot produce an answer
UNAVAILABLE_RECOMMENDATION = (
    "ИИ-медиатор временно недоступен. Постарайтесь выслушать друг друга и найти компромисс."
)

# --- Input errors ---

class CoupleNotFound(HTTPException):
    def __init__(self, couple_id: str):
        super().__init__(status_code=404, detail=f"Couple with id {couple_id} not found")

class CoupleNotActive(HTTPException):
    def __init__(self, couple_id: str):
        super().__init__(status_code=409, detail=f"Couple {couple_id} is not active")

class SenderNotInCouple(HTTPException):
    def __init__(self, sender_id: str, couple_id: str):
        super().__init__(status_code=403, detail=f"User {sender_id} is not part of couple {couple_id}")

class EmptyMessage(HTTPException):
    def __init__(self):
        super().__init__(status_code=422, detail="Message text must not be empty")

class SlotAlreadyFilled(HTTPException):
    def __init__(self, round_id: str):
        super().__init__(
            status_code=409,
            detail=f"You have already sent a message in round {round_id}; wait for your partner to reply"
        )

class RoundNotFound(HTTPException):
    def __init__(self, round_id: str):
        super().__init__(status_code=404, detail=f"Conversation round with id {round_id} not found")

class RoundNotReady(HTTPException):
    def __init__(self, round_id: str, reason: str):
        super().__init__(status_code=409, detail=f"Round {round_id} cannot be mediated: {reason}")

# --- Upstream errors ---

class MediationError(Exception):
    """Base class for failures talking to the mediation provider"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message if status_code is None else f"{message}: {status_code} {body}")

class MediatorNotConfigured(MediationError):
    def __init__(self):
        super().__init__("GIGACHAT_API_KEY not configured")

class TokenAcquisitionFailed(MediationError):
    def __init__(self, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__("Failed to get GigaChat token", status_code, body)

class CompletionRequestFailed(MediationError):
    def __init__(self, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__("Failed to get GigaChat response", status_code, body)

class MediationFailed(HTTPException):
    """Raised to the API caller when a round could not be mediated; the round stays retryable"""

    def __init__(self, round_id: Optional[str], cause: MediationError):
        self.round_id = round_id
        self.cause = cause
        super().__init__(status_code=502, detail=str(cause))

    def to_response_body(self):
        return {
            "error": self.cause.message,
            "recommendation": UNAVAILABLE_RECOMMENDATION,
            "upstream_status": self.cause.status_code,
            "upstream_body": self.cause.body,
            "round_id": self.round_id,
        }
