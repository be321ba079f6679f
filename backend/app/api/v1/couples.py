from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from backend.app.models.models import CoupleStatus
from backend.app.schemas.couples import CoupleCreate, CoupleJoin, CoupleResponse, CoupleStatistics, InviteCodeRegenerate
from backend.app.services.couple_service import (
    create_couple, join_couple, get_couple_by_id, get_couples_by_user_id, get_all_couples,
    regenerate_invite_code, deactivate_couple, activate_couple
)
from backend.app.services.conversation_service import get_couple_statistics
from backend.app.database import get_db_session

router = APIRouter()

@router.post("/", response_model=CoupleResponse)
async def create_couple_route(couple_data: CoupleCreate, db: Session = Depends(get_db_session)):
    """
    Create a couple and its invitation code.
    
    - The creator becomes partner 1
    - The couple stays pending until a partner joins with the code
    """
    return create_couple(db, couple_data)

@router.post("/join", response_model=CoupleResponse)
async def join_couple_route(join_data: CoupleJoin, db: Session = Depends(get_db_session)):
    """
    Join a couple with an invitation code.
    
    - The code is case-insensitive
    - Joining your own code is rejected
    - On success the couple becomes active
    """
    return join_couple(db, join_data)

@router.get("/", response_model=List[CoupleResponse])
async def get_couples_route(
    status: Optional[CoupleStatus] = Query(None, description="Filter by couple status"),
    db: Session = Depends(get_db_session)
):
    """
    List all couples (back-office).
    """
    return get_all_couples(db, status)

@router.get("/user/{user_id}", response_model=List[CoupleResponse])
async def get_user_couples_route(user_id: str, db: Session = Depends(get_db_session)):
    """
    Get all couples for a specific user.
    """
    return get_couples_by_user_id(db, user_id)

@router.get("/{couple_id}", response_model=CoupleResponse)
async def get_couple_route(couple_id: UUID, db: Session = Depends(get_db_session)):
    """
    Get a specific couple by ID.
    
    - Returns 404 if couple not found
    """
    return get_couple_by_id(db, str(couple_id))

@router.get("/{couple_id}/statistics", response_model=CoupleStatistics)
async def get_couple_statistics_route(couple_id: UUID, db: Session = Depends(get_db_session)):
    """
    Conversation statistics for a couple.
    """
    return get_couple_statistics(db, str(couple_id))

@router.post("/{couple_id}/invite-code", response_model=CoupleResponse)
async def regenerate_invite_code_route(
    couple_id: UUID, request: InviteCodeRegenerate, db: Session = Depends(get_db_session)
):
    """
    Replace the invitation code of a pending couple.
    
    - Only the couple creator may do this
    """
    return regenerate_invite_code(db, str(couple_id), request)

@router.post("/{couple_id}/deactivate", response_model=CoupleResponse)
async def deactivate_couple_route(couple_id: UUID, db: Session = Depends(get_db_session)):
    return deactivate_couple(db, str(couple_id))

@router.post("/{couple_id}/activate", response_model=CoupleResponse)
async def activate_couple_route(couple_id: UUID, db: Session = Depends(get_db_session)):
    return activate_couple(db, str(couple_id))
