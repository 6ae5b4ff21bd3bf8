# utils/tokenJWT.py
from jose import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db

# Authorization scheme; missing header is handled below so x-token can be tried
bearer_scheme = HTTPBearer(auto_error=False)

# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# Validate signature and expiry; raises jose.JWTError on failure
def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

# Pull the raw token from "Authorization: Bearer ..." or the x-token fallback header
def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_token: Optional[str] = Header(None, alias="x-token"),
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return x_token

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    token: Optional[str] = Depends(get_token),
    db: Session = Depends(get_db),
):
    # Imported here: services.auth imports this module for token helpers
    from services import auth as auth_service
    return auth_service.verify(db, token)
