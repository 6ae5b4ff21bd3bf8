# backend/services/auth.py
"""Registration, login and token verification."""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from jose import JWTError
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.product import Product
from models.stock import StockMovement
from models.users import User
from services.catalog import CatalogRepository
from services.ledger import StockLedger
from utils.errors import Conflict, InvalidCredentials, Unauthenticated, ValidationError
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, decode_access_token

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: User
    token: str


@dataclass
class Profile:
    user: User
    products: List[Product] = field(default_factory=list)
    movements: List[StockMovement] = field(default_factory=list)


def issue_token(user: User) -> str:
    return create_access_token(data={"sub": str(user.id)})


def register(db: Session, username: str, email: str, password: str) -> AuthResult:
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email or not password:
        raise ValidationError("username, email and password are required")

    existing = (
        db.query(User)
        .filter(or_(func.lower(User.email) == email, func.lower(User.username) == username.lower()))
        .first()
    )
    if existing:
        taken = "email" if existing.email.lower() == email else "username"
        raise Conflict(f"A user with this {taken} already exists")

    user = User(username=username, email=email, password_hash=get_password_hash(password), active=True)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email or username
        db.rollback()
        raise Conflict("A user with this email or username already exists")
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return AuthResult(user=user, token=issue_token(user))


def login(db: Session, identifier: str, password: str) -> AuthResult:
    ident = (identifier or "").strip().lower()
    if not ident or not password:
        raise ValidationError("email or username and password are required")

    user = (
        db.query(User)
        .filter(or_(func.lower(User.email) == ident, func.lower(User.username) == ident))
        .first()
    )
    # Unknown account, wrong password and disabled account look the same to the caller
    if user is None or not verify_password(password, user.password_hash) or not user.active:
        raise InvalidCredentials()
    return AuthResult(user=user, token=issue_token(user))


def verify(db: Session, token: Optional[str]) -> User:
    if not token:
        raise Unauthenticated("No token provided")
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise Unauthenticated("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.active:
        raise InvalidCredentials()
    return user


def profile(db: Session, user: User) -> Profile:
    return Profile(
        user=user,
        products=CatalogRepository(db, user.id).recent_products(),
        movements=StockLedger(db, user.id).recent_movements(),
    )
