from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from meditrack.config import get_settings
from meditrack.exceptions import UnauthorizedError
from meditrack.services.sessions import Principal

settings = get_settings()
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Spend the same time as a real verify when the user does not exist."""
    pwd_context.dummy_verify()


def create_access_token(principal: Principal, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES))
    to_encode = {
        "sub": str(principal.user_id),
        "username": principal.username,
        "role": principal.role,
        "sid": principal.session_id,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return Principal(
            user_id=int(payload["sub"]),
            username=payload["username"],
            role=payload["role"],
            session_id=payload["sid"],
        )
    except (JWTError, KeyError, ValueError):
        raise UnauthorizedError("Invalid token")
