from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Optional, List, Union
from datetime import datetime

from common.enum import MovementTypeEnum, RoleEnum


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Session Schemas
class Identity(BaseModel):
    """Authenticated actor attached to a request"""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[RoleEnum] = None


# Auth Schemas
class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserLogin(BaseModel):
    email: str
    password: str


# User Schemas
class UserCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: Optional[RoleEnum] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[RoleEnum] = None
    phone: Optional[str] = None


class UserSummary(BaseModel):
    id: str
    name: Optional[str]
    email: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: str
    name: Optional[str]
    email: str
    phone: Optional[str]
    role: RoleEnum
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# Movement Schemas
class MovementCreate(BaseModel):
    # Presence is checked by the handler so every gap reports "Missing fields"
    amount: Any = None
    concept: Optional[str] = None
    date: Optional[datetime] = None
    type: Optional[MovementTypeEnum] = None
    user_id: Optional[str] = Field(None, alias="userId")

    @field_validator("date", "type", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    class Config:
        populate_by_name = True


class MovementUpdate(BaseModel):
    amount: Any = None
    concept: Optional[str] = None
    date: Optional[datetime] = None
    type: Optional[MovementTypeEnum] = None


class MovementResponse(BaseModel):
    id: int
    amount: str
    concept: str
    date: datetime
    type: MovementTypeEnum
    user_id: str
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


# Report Schemas
class MovementSummary(BaseModel):
    """Flattened movement fed to the balance engine"""
    id: int
    amount: Union[int, float, str]
    type: MovementTypeEnum
    concept: Optional[str] = None
    date: Optional[str] = None
    user_name: Optional[str] = None


class ReportPoint(BaseModel):
    id: int
    date: Optional[str]
    amount: Optional[float]
    cumulative: Optional[float]
    x: float
    y: Optional[float]


class ReportResponse(BaseModel):
    balance: Optional[float]
    currency: str
    width: int
    height: int
    polyline: str
    points: List[ReportPoint]
    movements: List[MovementSummary]
