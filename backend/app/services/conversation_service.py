import logging
from datetime import datetime, timedelta
from typing import Dict, Any, Optional, Tuple

from sqlalchemy.orm import Session

from backend.app.config import get_settings
from backend.app.exceptions import (
    CoupleNotActive, SenderNotInCouple, EmptyMessage, SlotAlreadyFilled,
    RoundNotFound, RoundNotReady, MediationError, MediationFailed
)
from backend.app.models.models import Couple, CoupleStatus, ConversationRound, RoundStatus
from backend.app.schemas.conversations import SubmissionStatus
from backend.app.services.couple_service import get_couple_by_id
from backend.app.services.mediation_service import GigaChatMediator

logger = logging.getLogger(__name__)

def _resolve_slots(couple: Couple, sender_id: str) -> Tuple[Any, Any]:
    """Map the sender to (my slot column, other slot column)"""
    if sender_id == couple.partner_1_id:
        return ConversationRound.message_a, ConversationRound.message_b
    if sender_id == couple.partner_2_id:
        return ConversationRound.message_b, ConversationRound.message_a
    raise SenderNotInCouple(sender_id, couple.id)

def get_latest_round(db: Session, couple_id: str) -> Optional[ConversationRound]:
    return db.query(ConversationRound).filter(
        ConversationRound.couple_id == couple_id
    ).order_by(ConversationRound.created_at.desc()).first()

def get_round_by_id(db: Session, round_id: str) -> ConversationRound:
    """Service function to get a single conversation round"""
    conversation_round = db.query(ConversationRound).filter(ConversationRound.id == round_id).first()
    if not conversation_round:
        raise RoundNotFound(round_id)
    return conversation_round

def get_conversations_by_couple(db: Session, couple_id: str, limit: Optional[int] = None):
    """Conversation history for a couple, newest first"""
    get_couple_by_id(db, couple_id)

    query = db.query(ConversationRound).filter(
        ConversationRound.couple_id == couple_id
    ).order_by(ConversationRound.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()

def submit_message(
    db: Session,
    couple_id: str,
    sender_id: str,
    text: str,
    mediator: GigaChatMediator
) -> Dict[str, Any]:
    """
    Place a partner's message into the couple's current round.

    Fills the sender's empty slot on the latest open round, or opens a new
    round. Once both slots are populated the mediator is called exactly
    once for that round and its answer is stored on it.
    """
    couple = get_couple_by_id(db, couple_id)
    if couple.status != CoupleStatus.ACTIVE or couple.partner_2_id is None:
        raise CoupleNotActive(couple_id)

    my_slot, other_slot = _resolve_slots(couple, sender_id)

    text = (text or "").strip()
    if not text:
        raise EmptyMessage()

    latest = get_latest_round(db, couple_id)

    if latest is not None and latest.recommendation is None and getattr(latest, my_slot.key) is None:
        # Only succeeds while the slot is still empty
        other_filled = getattr(latest, other_slot.key) is not None
        values = {my_slot: text}
        if other_filled:
            values[ConversationRound.status] = RoundStatus.AWAITING_RECOMMENDATION

        updated = db.query(ConversationRound).filter(
            (ConversationRound.id == latest.id) &
            (my_slot.is_(None)) &
            (ConversationRound.recommendation.is_(None))
        ).update(values, synchronize_session=False)
        db.commit()

        if updated == 0:
            raise SlotAlreadyFilled(latest.id)

        round_id = latest.id
        submission_status = SubmissionStatus.FILLED
        logger.info("Round %s: slot %s filled", round_id, my_slot.key)

    elif (latest is not None and latest.recommendation is None
          and getattr(latest, my_slot.key) is not None and getattr(latest, other_slot.key) is None):
        # First write wins: the sender keeps their original message until the partner replies
        raise SlotAlreadyFilled(latest.id)

    else:
        new_round = ConversationRound(
            couple_id=couple_id,
            status=RoundStatus.AWAITING_PARTNER,
            **{my_slot.key: text}
        )
        db.add(new_round)
        db.commit()

        round_id = new_round.id
        submission_status = SubmissionStatus.CREATED
        logger.info("Round %s created for couple %s", round_id, couple_id)

    conversation_round = get_round_by_id(db, round_id)

    if (conversation_round.message_a and conversation_round.message_b
            and conversation_round.recommendation is None):
        conversation_round = _mediate_round(db, conversation_round, mediator)

    return {
        "status": submission_status,
        "round_id": conversation_round.id,
        "round_status": conversation_round.status,
        "recommendation": conversation_round.recommendation,
        "emotion_summary": conversation_round.emotion_summary,
    }

def retry_mediation(db: Session, couple_id: str, round_id: str, mediator: GigaChatMediator) -> ConversationRound:
    """
    Manually re-run mediation on a round whose earlier attempt failed.

    Completed rounds are returned as-is without calling the mediator.
    """
    conversation_round = get_round_by_id(db, round_id)
    if conversation_round.couple_id != couple_id:
        raise RoundNotFound(round_id)

    if conversation_round.recommendation is not None:
        return conversation_round

    if not (conversation_round.message_a and conversation_round.message_b):
        raise RoundNotReady(round_id, "waiting for both partners")

    return _mediate_round(db, conversation_round, mediator)

def _claim_round(db: Session, round_id: str) -> bool:
    """
    Atomically mark a fully-paired round as being mediated.

    Returns False when another request already holds a live claim or the
    recommendation has been written meanwhile.
    """
    now = datetime.utcnow()
    stale_before = now - timedelta(seconds=get_settings().mediation_claim_timeout_seconds)

    claimed = db.query(ConversationRound).filter(
        (ConversationRound.id == round_id) &
        (ConversationRound.message_a.isnot(None)) &
        (ConversationRound.message_b.isnot(None)) &
        (ConversationRound.recommendation.is_(None)) &
        (
            ConversationRound.status.in_([RoundStatus.AWAITING_PARTNER, RoundStatus.AWAITING_RECOMMENDATION]) |
            ((ConversationRound.status == RoundStatus.MEDIATING) &
             (ConversationRound.mediation_started_at < stale_before))
        )
    ).update(
        {ConversationRound.status: RoundStatus.MEDIATING, ConversationRound.mediation_started_at: now},
        synchronize_session=False
    )
    db.commit()
    return claimed == 1

def _release_claim(db: Session, round_id: str):
    """Hand a failed round back so it stays retryable"""
    db.rollback()
    db.query(ConversationRound).filter(
        (ConversationRound.id == round_id) &
        (ConversationRound.status == RoundStatus.MEDIATING) &
        (ConversationRound.recommendation.is_(None))
    ).update(
        {ConversationRound.status: RoundStatus.AWAITING_RECOMMENDATION,
         ConversationRound.mediation_started_at: None},
        synchronize_session=False
    )
    db.commit()

def _mediate_round(db: Session, conversation_round: ConversationRound, mediator: GigaChatMediator) -> ConversationRound:
    round_id = conversation_round.id

    if not _claim_round(db, round_id):
        logger.info("Round %s is already being mediated, skipping", round_id)
        return get_round_by_id(db, round_id)

    db.refresh(conversation_round)
    try:
        result = mediator.mediate(conversation_round.message_a, conversation_round.message_b)
    except MediationError as e:
        logger.error("Mediation failed for round %s: %s", round_id, e)
        _release_claim(db, round_id)
        raise MediationFailed(round_id, e)
    except Exception as e:
        logger.exception("Unexpected mediation error for round %s", round_id)
        _release_claim(db, round_id)
        raise MediationFailed(round_id, MediationError(f"Unexpected mediation error: {e}")) from e

    stored = db.query(ConversationRound).filter(
        (ConversationRound.id == round_id) &
        (ConversationRound.recommendation.is_(None))
    ).update(
        {ConversationRound.recommendation: result.recommendation,
         ConversationRound.emotion_summary: result.emotion_summary,
         ConversationRound.status: RoundStatus.COMPLETED},
        synchronize_session=False
    )
    db.commit()

    if stored == 0:
        logger.warning("Round %s already had a recommendation, discarding duplicate", round_id)
    else:
        logger.info("Round %s completed (tone=%s)", round_id, result.emotion_summary.get("overall_tone"))

    return get_round_by_id(db, round_id)

def get_couple_statistics(db: Session, couple_id: str) -> Dict[str, Any]:
    """Round counts and tone breakdown shown on the dashboard and admin couples table"""
    get_couple_by_id(db, couple_id)

    rounds = db.query(ConversationRound).filter(ConversationRound.couple_id == couple_id).all()

    stats = {
        "couple_id": couple_id,
        "total_rounds": len(rounds),
        "completed_rounds": 0,
        "awaiting_partner_rounds": 0,
        "awaiting_recommendation_rounds": 0,
        "aligned_rounds": 0,
        "conflicted_rounds": 0,
        "last_activity_at": None,
    }

    for conversation_round in rounds:
        if conversation_round.status == RoundStatus.COMPLETED:
            stats["completed_rounds"] += 1
            tone = (conversation_round.emotion_summary or {}).get("overall_tone")
            if tone == "aligned":
                stats["aligned_rounds"] += 1
            elif tone == "conflicted":
                stats["conflicted_rounds"] += 1
        elif conversation_round.status == RoundStatus.AWAITING_PARTNER:
            stats["awaiting_partner_rounds"] += 1
        else:
            stats["awaiting_recommendation_rounds"] += 1

        activity = conversation_round.updated_at or conversation_round.created_at
        if stats["last_activity_at"] is None or activity > stats["last_activity_at"]:
            stats["last_activity_at"] = activity

    return stats
