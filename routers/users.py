import logging
from contextlib import contextmanager
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from errors import method_not_allowed
from models import User
from rbac import require_admin
from schemas import Identity, UserCreate, UserResponse, UserUpdate
from services import create_user, delete_user, get_user, list_users, update_user

logger = logging.getLogger(__name__)

router = APIRouter()


@contextmanager
def store_errors(db: Session):
    """Report store failures with the store's own message"""
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("User store operation failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(getattr(exc, "orig", None) or exc) or "Server error"
        ) from exc


def load_user(user_id: str, db: Session = Depends(get_db)) -> User:
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not found"
        )
    return user


@router.get("", response_model=List[UserResponse])
async def list_all_users(
        db: Session = Depends(get_db),
        session: Identity = Depends(require_admin)
):
    """List accounts, newest first"""
    with store_errors(db):
        return list_users(db)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_new_user(
        user_data: UserCreate,
        db: Session = Depends(get_db),
        session: Identity = Depends(require_admin)
):
    """Create an account without credentials"""
    if not user_data.name or not user_data.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing name or email"
        )

    with store_errors(db):
        return create_user(db, user_data)


@router.api_route(
    "",
    methods=["PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def users_method_not_allowed(session: Identity = Depends(require_admin)):
    raise method_not_allowed(["GET", "POST"])


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(
        session: Identity = Depends(require_admin),
        user: User = Depends(load_user)
):
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def update_existing_user(
        user_data: UserUpdate,
        session: Identity = Depends(require_admin),
        user: User = Depends(load_user),
        db: Session = Depends(get_db)
):
    """Change name, role or phone; omitted fields stay as they are"""
    with store_errors(db):
        return update_user(db, user, user_data)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_user(
        session: Identity = Depends(require_admin),
        user: User = Depends(load_user),
        db: Session = Depends(get_db)
):
    """Delete an account and its movements"""
    with store_errors(db):
        delete_user(db, user)
    return None


@router.api_route(
    "/{user_id}",
    methods=["POST", "PATCH", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def user_method_not_allowed(user_id: str, session: Identity = Depends(require_admin)):
    raise method_not_allowed(["GET", "PUT", "DELETE"])
