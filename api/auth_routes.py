from fastapi import APIRouter, Depends, Request, Response
from models.types import UserCreate, UserLogin, User
from core.auth import clear_auth_cookie, create_access_token, get_current_active_user, set_auth_cookie
from core.database import DatabaseManager, get_db
from core.errors import Conflict, Unauthorized
from core.limiter import limiter
from core.password import get_password_hash, needs_rehash, verify_password
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _public_user(user) -> dict:
    return User(**user.model_dump(exclude={"hashed_password"})).model_dump()


@router.post("/register")
@limiter.limit("10/minute")
async def register_user(request: Request, user_data: UserCreate, response: Response, database: DatabaseManager = Depends(get_db)):
    """Register a new user and log them in by setting a cookie."""
    name = (user_data.name or "").strip() or None
    user_id = database.create_user(user_data.email.lower(), name, get_password_hash(user_data.password))
    if user_id is None:
        raise Conflict("Email already registered")

    user = database.get_user_by_id(user_id)
    access_token = create_access_token(data={"sub": user.email})

    logger.info(f"New user registered and logged in: {user.email}")
    set_auth_cookie(response, access_token)

    return {"ok": True, "data": {"message": "Registration successful", "user": _public_user(user), "access_token": access_token}}


@router.post("/login")
@limiter.limit("20/minute")
async def login_user(request: Request, user_data: UserLogin, response: Response, database: DatabaseManager = Depends(get_db)):
    """Login user and set access_token cookie"""
    user = database.get_user_by_email(user_data.email)
    if not user or not verify_password(user_data.password, user.hashed_password):
        logger.info(f"Failed login attempt for {user_data.email}")
        raise Unauthorized("Incorrect email or password")

    if needs_rehash(user.hashed_password):
        database.update_password_hash(user.id, get_password_hash(user_data.password))

    access_token = create_access_token(data={"sub": user.email})

    logger.info(f"User logged in: {user.email}")
    set_auth_cookie(response, access_token)

    return {"ok": True, "data": {"message": "Login successful", "user": _public_user(user), "access_token": access_token}}


@router.post("/logout")
async def logout(response: Response):
    """Logs out the user by clearing the access token cookie."""
    logger.info("User logging out.")
    clear_auth_cookie(response)
    return {"ok": True, "data": {"message": "Successfully logged out"}}


@router.get("/me")
async def get_current_user_info(current_user: User = Depends(get_current_active_user)):
    """Get current user information"""
    if not current_user:
        raise Unauthorized()
    return {"ok": True, "data": current_user.model_dump()}
