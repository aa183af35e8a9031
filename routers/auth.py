from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from rbac import require_session
from schemas import Identity, UserLogin, UserRegister, UserResponse, Token
from security import create_access_token
from services import authenticate_user, register_user

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Sign up a new account"""
    return register_user(db, user_data)


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    user = authenticate_user(db, login_data.email, login_data.password)
    access_token = create_access_token(data={"sub": user.id})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user
    }


@router.get("/me", response_model=Identity)
async def get_current_session(session: Identity = Depends(require_session)):
    """Identity and role behind the current token"""
    return session
