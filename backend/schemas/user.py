# backend/schemas/user.py
from datetime import datetime
from typing import List, Optional
from models.stock import MovementKind
from pydantic import EmailStr, Field, model_validator

from schemas.common import ORMBase

# Schema for user registration requests
class UserCreate(ORMBase):
    username: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=6)

# Schema for login: either email or username identifies the account
class UserLogin(ORMBase):
    email: Optional[str] = None
    username: Optional[str] = None
    password: str = Field(min_length=1)

    @model_validator(mode="after")
    def _identifier_present(self):
        if not (self.email or "").strip() and not (self.username or "").strip():
            raise ValueError("email or username is required")
        return self

    @property
    def identifier(self) -> str:
        return (self.email or "").strip() or (self.username or "").strip()

# Output schema for user profile details; never includes the password hash
class UserResponse(ORMBase):
    id: int
    username: str
    email: str
    active: bool
    created_at: Optional[datetime] = None

# Registration / login payload
class AuthData(ORMBase):
    user: UserResponse
    token: str


class RecentProduct(ORMBase):
    id: int
    name: str
    code: str
    stock: int


class RecentMovement(ORMBase):
    id: int
    product_id: int
    kind: MovementKind = Field(serialization_alias="type")
    quantity: int
    occurred_at: datetime


class ProfileData(UserResponse):
    products: List[RecentProduct] = []
    movements: List[RecentMovement] = []
