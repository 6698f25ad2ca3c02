from passlib.context import CryptContext

# Konfigurera passlib för bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifierar ett lösenord mot en hash.
    Saknad eller trasig hash räknas som fel lösenord.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # "not a valid bcrypt hash" och liknande
        return False


def get_password_hash(password: str) -> str:
    """Genererar en bcrypt-hash för ett nytt lösenord."""
    return pwd_context.hash(password)


def needs_rehash(hashed_password: str) -> bool:
    return pwd_context.needs_update(hashed_password)
