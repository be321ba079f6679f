from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from backend.app.schemas.conversations import (
    MessageSubmit, MessageSubmitResponse, MediationRetry, ConversationRoundResponse
)
from backend.app.services.conversation_service import (
    submit_message, retry_mediation, get_round_by_id, get_conversations_by_couple
)
from backend.app.services.mediation_service import GigaChatMediator, get_mediator
from backend.app.database import get_db_session

router = APIRouter()

@router.post("/", response_model=MessageSubmitResponse)
def submit_message_route(
    message: MessageSubmit,
    db: Session = Depends(get_db_session),
    mediator: GigaChatMediator = Depends(get_mediator)
):
    """
    Submit a partner's private message.
    
    - Fills the sender's slot in the open round or starts a new round
    - When both partners have written, requests the AI recommendation once
    - Returns 502 with a fallback recommendation if the AI provider fails;
      the round can then be retried
    """
    return submit_message(db, message.couple_id, message.sender_id, message.text, mediator)

@router.get("/couple/{couple_id}", response_model=List[ConversationRoundResponse])
def get_couple_conversations_route(
    couple_id: str,
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of rounds to return"),
    db: Session = Depends(get_db_session)
):
    """
    Get a couple's conversation rounds, newest first.
    """
    return get_conversations_by_couple(db, couple_id, limit)

@router.get("/{round_id}", response_model=ConversationRoundResponse)
def get_round_route(round_id: str, db: Session = Depends(get_db_session)):
    return get_round_by_id(db, round_id)

@router.post("/{round_id}/mediate", response_model=ConversationRoundResponse)
def retry_mediation_route(
    round_id: str,
    request: MediationRetry,
    db: Session = Depends(get_db_session),
    mediator: GigaChatMediator = Depends(get_mediator)
):
    """
    Retry the AI recommendation for a round whose previous attempt failed.
    
    - Completed rounds are returned unchanged
    """
    return retry_mediation(db, request.couple_id, round_id, mediator)
