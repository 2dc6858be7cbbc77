import hmac
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.core.security import CredentialService, TokenService
from app.models.user import User, UserRole
from app.services.s3 import ImageUpload, MediaStore

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "Email already used"


class AuthService:
    def __init__(
        self,
        session: Session,
        credentials: CredentialService,
        tokens: TokenService,
        media: MediaStore,
        admin_access_token: str = "",
    ):
        self.session = session
        self.credentials = credentials
        self.tokens = tokens
        self.media = media
        self.admin_access_token = admin_access_token

    def get_user_by_email(self, email: str) -> Optional[User]:
        # Exact match: emails are case-sensitive as stored
        return self.session.exec(select(User).where(User.email == email)).first()

    def resolve_role(self, admin_access_token: Optional[str]) -> UserRole:
        if not admin_access_token or not self.admin_access_token:
            return UserRole.MEMBER
        if hmac.compare_digest(admin_access_token.encode(), self.admin_access_token.encode()):
            return UserRole.ADMIN
        return UserRole.MEMBER

    def register_user(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        bio: Optional[str] = None,
        admin_access_token: Optional[str] = None,
        avatar: Optional[ImageUpload] = None,
    ) -> User:
        if not name or not email or not password:
            raise ValidationError("Name, email and password are required")

        if self.get_user_by_email(email):
            raise ConflictError(EMAIL_IN_USE, status_code=406)

        user = User(
            name=name,
            email=email,
            bio=bio,
            role=self.resolve_role(admin_access_token),
            password_hash=self.credentials.hash(password),
        )

        if avatar:
            user.image_url, user.image_id = self.media.upload(
                avatar.content, avatar.filename, folder="users", content_type=avatar.content_type
            )

        image_id = user.image_id
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration for the same email
            self.session.rollback()
            self.media.destroy(image_id)
            raise ConflictError(EMAIL_IN_USE, status_code=406)
        except SQLAlchemyError as e:
            self.session.rollback()
            self.media.destroy(image_id)
            logger.exception("Failed to store account for %s", email)
            raise StorageError(f"Failed to register user: {e}")

        self.session.refresh(user)
        logger.info("Registered user %s as %s", user.id, user.role.value)
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email)
        if not user:
            raise NotFoundError("You are not registered user", status_code=400)
        if not self.credentials.verify(password, user.password_hash):
            raise InvalidCredentialsError()
        return user

    def login(self, email: str, password: str) -> str:
        user = self.authenticate_user(email, password)
        token = self.tokens.issue({
            "email": user.email,
            "id": user.id,
            "isAdmin": user.role == UserRole.ADMIN,
        })
        logger.info("User %s logged in", user.id)
        return token

    def get_profile(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

