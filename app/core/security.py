from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel
from passlib.context import CryptContext
from jose import jwt, JWTError

from app.core.config import Settings
from app.core.errors import HashingError, InvalidTokenError

# Registered JWT claims added by issue(); stripped again by verify()
RESERVED_CLAIMS = ("exp", "iat", "nbf")


class Identity(BaseModel):
    """Caller identity decoded from a verified session token."""
    id: int
    email: str
    is_admin: bool = False

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Identity":
        return cls(id=claims["id"], email=claims["email"], is_admin=bool(claims.get("isAdmin", False)))


class CredentialService:
    """One-way password hashing (bcrypt, cost factor 10)."""

    def __init__(self, rounds: int = 10):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        try:
            return self.pwd_context.hash(password)
        except (ValueError, TypeError) as e:
            raise HashingError(f"Could not hash password: {e}")

    def verify(self, password: str, hashed_password: str) -> bool:
        # passlib compares digests in constant time
        try:
            return self.pwd_context.verify(password, hashed_password)
        except (ValueError, TypeError) as e:
            raise HashingError(f"Malformed password hash: {e}")


class TokenService:
    """Issues and verifies signed, self-expiring session tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(settings.JWT_SECRET_KEY, settings.JWT_ALGORITHM, settings.JWT_EXPIRE_MINUTES)

    def issue(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        to_encode = claims.copy()
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.expire_minutes)
        to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidTokenError(str(e))
        return {key: value for key, value in payload.items() if key not in RESERVED_CLAIMS}
