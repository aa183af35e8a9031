import re
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from errors import method_not_allowed
from models import Movement
from rbac import require_admin, require_session
from schemas import Identity, MovementCreate, MovementUpdate, MovementResponse
from services import create_movement, delete_movement, get_movement, list_movements, update_movement

router = APIRouter()

_ID_RE = re.compile(r"\s*[+-]?[0-9]+\s*")
# Ids are stored as 64-bit signed integers
MAX_ID = 2 ** 63 - 1
MIN_ID = -(2 ** 63)


def movement_id_param(movement_id: str) -> int:
    if not _ID_RE.fullmatch(movement_id) or not MIN_ID <= int(movement_id) <= MAX_ID:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid id"
        )
    return int(movement_id)


def load_movement(
        movement_pk: int = Depends(movement_id_param),
        db: Session = Depends(get_db)
) -> Movement:
    movement = get_movement(db, movement_pk)
    if not movement:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not found"
        )
    return movement


@router.get("", response_model=List[MovementResponse])
async def list_all_movements(
        db: Session = Depends(get_db),
        session: Identity = Depends(require_session)
):
    """List every movement, newest first, with its owner"""
    return list_movements(db)


@router.post("", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
async def create_new_movement(
        movement_data: MovementCreate,
        db: Session = Depends(get_db),
        session: Identity = Depends(require_admin)
):
    """Record a movement for any user"""
    movement = create_movement(db, movement_data)
    return get_movement(db, movement.id)


@router.api_route(
    "",
    methods=["PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def movements_method_not_allowed(session: Identity = Depends(require_session)):
    raise method_not_allowed(["GET", "POST"])


@router.get("/{movement_id}", response_model=MovementResponse)
async def read_movement(
        session: Identity = Depends(require_session),
        movement: Movement = Depends(load_movement)
):
    """Get a specific movement"""
    return movement


@router.put("/{movement_id}", response_model=MovementResponse)
async def update_existing_movement(
        movement_data: MovementUpdate,
        session: Identity = Depends(require_admin),
        movement: Movement = Depends(load_movement),
        db: Session = Depends(get_db)
):
    """Change only the fields present in the body"""
    return update_movement(db, movement, movement_data)


@router.delete("/{movement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_movement(
        session: Identity = Depends(require_admin),
        movement: Movement = Depends(load_movement),
        db: Session = Depends(get_db)
):
    """Delete a movement"""
    delete_movement(db, movement)
    return None


@router.api_route(
    "/{movement_id}",
    methods=["POST", "PATCH", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def movement_method_not_allowed(
        session: Identity = Depends(require_admin),
        movement_pk: int = Depends(movement_id_param)
):
    raise method_not_allowed(["GET", "PUT", "DELETE"])
