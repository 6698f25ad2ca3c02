from fastapi import Depends, Request, Response
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from models.types import User
from core.config import settings
from core.database import DatabaseManager, get_db
from core.errors import Unauthorized
import logging

COOKIE_NAME = "access_token"

logger = logging.getLogger(__name__)

# --- Token-skapande ---
def create_access_token(data: dict, expires_minutes: Optional[int] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or settings.token_expire_minutes)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return encoded_jwt


def set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        max_age=settings.token_expire_minutes * 60,
    )


def clear_auth_cookie(response: Response):
    response.delete_cookie(COOKIE_NAME)


def read_token(request: Request) -> Optional[str]:
    """Cookie first, then an ``Authorization: Bearer`` header."""
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


# --- Beroende för att hämta aktiv användare ---
async def get_current_active_user(request: Request, database: DatabaseManager = Depends(get_db)) -> Optional[User]:
    """
    Hämtar den inloggade användaren från en JWT-token.
    - Läser och verifierar token.
    - Hämtar användaren från databasen.
    - Returnerar användarobjektet eller None om användaren är anonym.
    """
    token = read_token(request)

    if not token:
        # Ingen token, användaren är anonym
        return None

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        email: str = payload.get("sub")
        if email is None:
            return None
    except JWTError:
        # Ogiltig eller utgången token
        logger.debug("Rejected invalid or expired token")
        return None

    user_in_db = database.get_user_by_email(email)

    if user_in_db is None:
        return None

    return User(**user_in_db.model_dump(exclude={"hashed_password"}))


async def require_user(current_user: Optional[User] = Depends(get_current_active_user)) -> User:
    if not current_user:
        raise Unauthorized()
    return current_user
