# backend/routes/auth.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas import user as schemas
from schemas.common import ApiResponse
from services import auth as auth_service
from utils.audit import write_log
from utils.errors import AppError
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


def _ip(request: Request):
    return request.client.host if request.client else None


# Register a new user
@router.post("/register", response_model=ApiResponse[schemas.AuthData], status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    try:
        result = auth_service.register(db, payload.username, payload.email, payload.password)
    except AppError as exc:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=_ip(request), meta={"email": payload.email, "reason": exc.message})
        raise

    write_log(db, user_id=result.user.id, action="REGISTER", resource="auth",
              ip=_ip(request), meta={"email": result.user.email})
    return {"success": True, "message": "User registered", "data": {"user": result.user, "token": result.token}}


# Authenticate user and issue JWT token
@router.post("/login", response_model=ApiResponse[schemas.AuthData])
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    try:
        result = auth_service.login(db, payload.identifier, payload.password)
    except AppError:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=_ip(request), meta={"identifier": payload.identifier})
        raise

    write_log(db, user_id=result.user.id, action="LOGIN", resource="auth",
              ip=_ip(request), meta={"email": result.user.email})
    return {"success": True, "message": "Login successful", "data": {"user": result.user, "token": result.token}}


# Current user with their latest products and movements
@router.get("/me", response_model=ApiResponse[schemas.ProfileData])
def me(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    profile = auth_service.profile(db, current_user)
    data = schemas.UserResponse.model_validate(profile.user).model_dump()
    data.update(products=profile.products, movements=profile.movements)
    return {"success": True, "data": data}
