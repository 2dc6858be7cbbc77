from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile, status
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlmodel import Session

from app.core.config import Settings, get_settings
from app.core.errors import ForbiddenError, InvalidTokenError, UnauthenticatedError, ValidationError
from app.core.security import CredentialService, Identity, TokenService
from app.db.session import get_session
from app.models.user import User
from app.services.auth import AuthService
from app.services.s3 import ImageUpload, MediaStore, get_media_store

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


@lru_cache
def get_credential_service() -> CredentialService:
    return CredentialService()

def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService.from_settings(settings)

def get_auth_service(
    session: Session = Depends(get_session),
    credentials: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
    media: MediaStore = Depends(get_media_store),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(session, credentials, tokens, media, admin_access_token=settings.ADMIN_ACCESS_TOKEN)


async def read_image(file: Optional[UploadFile]) -> Optional[ImageUpload]:
    """Read an optional multipart image field; non-images are rejected."""
    if file is None or not file.filename:
        return None
    if not (file.content_type or "").startswith("image/"):
        raise ValidationError("File must be an image")
    content = await file.read()
    return ImageUpload(content=content, filename=file.filename, content_type=file.content_type)


def get_current_identity(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """Require ``Authorization: Bearer <token>`` and return the caller's identity."""
    if not authorization or not authorization.startswith("Bearer"):
        raise UnauthenticatedError("Unauthorized")

    parts = authorization.split(" ", 1)
    token = parts[1].strip() if len(parts) == 2 else ""
    if not token:
        raise UnauthenticatedError("Unauthorized")

    try:
        return Identity.from_claims(tokens.verify(token))
    except InvalidTokenError as e:
        raise UnauthenticatedError(f"Token failed: {e.message}")
    except (KeyError, PydanticValidationError):
        raise UnauthenticatedError("Token failed: missing identity claims")


def require_admin(
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
) -> User:
    """Check the caller's current role in storage, not the token claim."""
    user = session.get(User, identity.id)
    if user is None or not user.is_admin:
        raise ForbiddenError("You are not authorized to access this resource.")
    return user


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    adminAccessToken: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: AuthService = Depends(get_auth_service),
):
    avatar = await read_image(image)
    service.register_user(
        name, email, password, bio=bio, admin_access_token=adminAccessToken, avatar=avatar
    )
    return {"success": True, "message": "User register successfully"}

@router.post("/login")
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    token = service.login(data.email, data.password)
    return {"success": True, "message": "Login Successful", "token": token}

@router.get("/profile")
def read_profile(
    identity: Identity = Depends(get_current_identity),
    service: AuthService = Depends(get_auth_service),
):
    user = service.get_profile(identity.id)
    return {"success": True, "message": "Success", "user": user.to_public_dict()}
