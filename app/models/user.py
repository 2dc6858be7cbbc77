from typing import Optional
from enum import Enum
from datetime import datetime, timezone
from sqlmodel import Field, SQLModel

def utcnow() -> datetime:
    """Timezone-aware UTC timestamp for every stored date."""
    return datetime.now(timezone.utc)

class UserRole(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"

class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    name: str
    email: str = Field(unique=True, index=True)  # case-sensitive, as submitted
    password_hash: str
    bio: Optional[str] = None

    # Access
    role: UserRole = Field(default=UserRole.MEMBER)

    # Avatar (image_id is the media store key, used to destroy the asset)
    image_url: Optional[str] = None
    image_id: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_public_dict(self) -> dict:
        """Profile view, never includes the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "bio": self.bio,
            "role": self.role.value if isinstance(self.role, UserRole) else self.role,
            "image": self.image_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
