import logging
import secrets
import string
from typing import Optional

from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.config import get_settings
from backend.app.exceptions import CoupleNotFound
from backend.app.models.models import Couple, CoupleStatus, User
from backend.app.schemas.couples import CoupleCreate, CoupleJoin, InviteCodeRegenerate

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits

def generate_invite_code(db: Session, length: Optional[int] = None) -> str:
    """Random upper-case code that no other couple currently uses"""
    length = length or get_settings().invite_code_length
    while True:
        code = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))
        if not db.query(Couple).filter(Couple.invite_code == code).first():
            return code

def _get_current_couple_for_user(db: Session, user_id: str):
    return db.query(Couple).filter(
        ((Couple.partner_1_id == user_id) | (Couple.partner_2_id == user_id)) &
        (Couple.status != CoupleStatus.INACTIVE)
    ).first()

def create_couple(db: Session, couple_data: CoupleCreate):
    """Service function to create a pending couple with a fresh invitation code"""

    partner_1 = db.query(User).filter(User.id == couple_data.partner_1_id).first()
    if not partner_1:
        raise HTTPException(status_code=404, detail=f"User with id {couple_data.partner_1_id} not found")

    if _get_current_couple_for_user(db, partner_1.id):
        raise HTTPException(status_code=400, detail="User already belongs to a couple")

    new_couple = Couple(
        partner_1_id=partner_1.id,
        invite_code=generate_invite_code(db),
        status=CoupleStatus.PENDING
    )

    db.add(new_couple)
    db.commit()
    db.refresh(new_couple)

    logger.info("Couple %s created by user %s", new_couple.id, partner_1.id)
    return new_couple

def join_couple(db: Session, join_data: CoupleJoin):
    """Redeem an invitation code as the second partner"""

    user = db.query(User).filter(User.id == join_data.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {join_data.user_id} not found")

    code = join_data.invite_code.strip().upper()
    couple = db.query(Couple).filter(Couple.invite_code == code).first()
    if not couple:
        raise HTTPException(status_code=404, detail=f"Invite code {code} not found")

    if couple.partner_1_id == user.id:
        raise HTTPException(status_code=400, detail="You cannot join your own invite code")

    if couple.partner_2_id is not None or couple.status != CoupleStatus.PENDING:
        raise HTTPException(status_code=400, detail="This invite code has already been used")

    if _get_current_couple_for_user(db, user.id):
        raise HTTPException(status_code=400, detail="User already belongs to a couple")

    # Conditional update so two people redeeming the same code cannot both win
    updated = db.query(Couple).filter(
        (Couple.id == couple.id) &
        (Couple.partner_2_id.is_(None)) &
        (Couple.status == CoupleStatus.PENDING)
    ).update(
        {Couple.partner_2_id: user.id, Couple.status: CoupleStatus.ACTIVE},
        synchronize_session=False
    )
    db.commit()

    if updated == 0:
        raise HTTPException(status_code=400, detail="This invite code has already been used")

    db.refresh(couple)
    logger.info("User %s joined couple %s", user.id, couple.id)
    return couple

def get_couple_by_id(db: Session, couple_id: str):
    """Service function to get a couple by ID"""
    couple = db.query(Couple).filter(Couple.id == couple_id).first()
    if not couple:
        raise CoupleNotFound(couple_id)
    return couple

def get_couples_by_user_id(db: Session, user_id: str):
    """Service function to get all couples a user belongs to"""
    couples = db.query(Couple).filter(
        (Couple.partner_1_id == user_id) | (Couple.partner_2_id == user_id)
    ).order_by(Couple.created_at.desc()).all()
    return couples

def get_all_couples(db: Session, status: Optional[CoupleStatus] = None):
    """Back-office listing of couples, newest first"""
    query = db.query(Couple)
    if status:
        query = query.filter(Couple.status == status)
    return query.order_by(Couple.created_at.desc()).all()

def regenerate_invite_code(db: Session, couple_id: str, request: InviteCodeRegenerate):
    """Only the creator may replace the code, and only before the partner has joined"""
    couple = get_couple_by_id(db, couple_id)

    if couple.partner_1_id != request.user_id:
        raise HTTPException(status_code=403, detail="Only the couple creator can regenerate the invite code")

    if couple.status != CoupleStatus.PENDING:
        raise HTTPException(status_code=400, detail="Invite code can only be regenerated while waiting for a partner")

    couple.invite_code = generate_invite_code(db)
    db.commit()
    db.refresh(couple)
    return couple

def deactivate_couple(db: Session, couple_id: str):
    couple = get_couple_by_id(db, couple_id)
    couple.status = CoupleStatus.INACTIVE
    db.commit()
    db.refresh(couple)
    logger.info("Couple %s deactivated", couple_id)
    return couple

def activate_couple(db: Session, couple_id: str):
    """Back-office: bring an inactive couple back, provided both partners are set"""
    couple = get_couple_by_id(db, couple_id)

    if couple.partner_2_id is None:
        raise HTTPException(status_code=400, detail="Couple cannot be activated before the second partner joins")

    for partner_id in (couple.partner_1_id, couple.partner_2_id):
        current = _get_current_couple_for_user(db, partner_id)
        if current is not None and current.id != couple.id:
            raise HTTPException(status_code=400, detail=f"User {partner_id} already belongs to another couple")

    couple.status = CoupleStatus.ACTIVE
    db.commit()
    db.refresh(couple)
    logger.info("Couple %s activated", couple_id)
    return couple
