import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.models.models import User
from backend.app.schemas.users import UserCreate, UserUpdate, UserRoleUpdate

logger = logging.getLogger(__name__)

def create_user(db: Session, user_data: UserCreate):
    """Service function to create a new user profile"""
    # Check if user with this email already exists
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        email=user_data.email,
        first_name=user_data.first_name,
        last_name=user_data.last_name
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    return new_user

def get_all_users(db: Session):
    """Service function to get all users, newest first"""
    return db.query(User).order_by(User.created_at.desc()).all()

def get_user_by_id(db: Session, user_id: str):
    """Service function to get a user by ID"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {user_id} not found")
    return user

def get_user_by_email(db: Session, email: str):
    """Service function to get a user by email"""
    return db.query(User).filter(User.email == email).first()

def update_user(db: Session, user_id: str, user_data: UserUpdate):
    """Service function to update a user's profile"""
    user = get_user_by_id(db, user_id)

    if user_data.first_name is not None:
        user.first_name = user_data.first_name
    if user_data.last_name is not None:
        user.last_name = user_data.last_name

    db.commit()
    db.refresh(user)
    return user

def update_user_role(db: Session, user_id: str, role_data: UserRoleUpdate):
    """Back-office: grant or revoke the admin role"""
    user = get_user_by_id(db, user_id)
    user.role = role_data.role

    db.commit()
    db.refresh(user)
    logger.info("Role of user %s changed to %s", user_id, role_data.role.value)
    return user
