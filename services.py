import logging
import math
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from balance import format_number
from models import Movement, User
from schemas import MovementCreate, MovementUpdate, UserCreate, UserRegister, UserUpdate
from security import hash_password, verify_password
from common.enum import RoleEnum

logger = logging.getLogger(__name__)

MOVEMENT_FIELDS = ("amount", "concept", "date", "type")


def normalize_amount(value):
    """Numbers and strings go through untouched, anything else is string-cast.

    No numeric validation happens here; malformed amounts are stored and show
    up as NaN in balances.
    """
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return value
    return str(value)


def stored_amount(value) -> str:
    value = normalize_amount(value)
    return value if isinstance(value, str) else format_number(value)


def missing_amount(value) -> bool:
    """Absent, null, false, blank, zero or NaN; any other value counts as given"""
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or math.isnan(value)
    return False


# ---------------- USERS ---------------- #

def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def create_user(db: Session, data: UserCreate) -> User:
    user = User(
        name=data.name,
        email=data.email,
        phone=data.phone,
        role=data.role or RoleEnum.USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s created with role %s", user.id, user.role.value)
    return user


def update_user(db: Session, user: User, data: UserUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "role" and value is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid role"
            )
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    db.delete(user)
    db.commit()
    logger.info("User %s deleted", user.id)


def on_user_created(db: Session, user: User) -> User:
    """Post sign-up hook: promote the new account to ADMIN.

    Runs on every sign-up, not only for the first account. Whether later
    sign-ups should stay USER is an open product question.
    """
    user.role = RoleEnum.ADMIN
    db.commit()
    db.refresh(user)
    logger.warning("Sign-up %s promoted to ADMIN", user.id)
    return user


def register_user(db: Session, data: UserRegister) -> User:
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        name=data.name,
        email=data.email,
        hashed_password=hash_password(data.password),
        role=RoleEnum.USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return on_user_created(db, user)


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()

    if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    return user


# ---------------- MOVEMENTS ---------------- #

def list_movements(db: Session, ascending: bool = False) -> List[Movement]:
    order = Movement.date.asc() if ascending else Movement.date.desc()
    return (
        db.query(Movement)
        .options(joinedload(Movement.user))
        .order_by(order, Movement.id)
        .all()
    )


def get_movement(db: Session, movement_id: int) -> Optional[Movement]:
    return (
        db.query(Movement)
        .options(joinedload(Movement.user))
        .filter(Movement.id == movement_id)
        .first()
    )


def create_movement(db: Session, data: MovementCreate) -> Movement:
    if missing_amount(data.amount) or not all([data.concept, data.date, data.type, data.user_id]):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing fields"
        )

    owner = get_user(db, data.user_id)
    if owner is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User not found"
        )

    movement = Movement(
        amount=stored_amount(data.amount),
        concept=data.concept,
        date=data.date,
        type=data.type,
        user_id=owner.id,
    )
    db.add(movement)
    db.commit()
    db.refresh(movement)
    logger.info("Movement %s created for user %s", movement.id, owner.id)
    return movement


def update_movement(db: Session, movement: Movement, data: MovementUpdate) -> Movement:
    changes = data.model_dump(include=set(MOVEMENT_FIELDS), exclude_unset=True)

    for field, value in changes.items():
        if value is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid {field}"
            )
        if field == "amount":
            value = stored_amount(value)
        setattr(movement, field, value)

    db.commit()
    db.refresh(movement)
    return movement


def delete_movement(db: Session, movement: Movement) -> None:
    db.delete(movement)
    db.commit()
    logger.info("Movement %s deleted", movement.id)
