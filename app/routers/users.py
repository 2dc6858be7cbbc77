from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.routers.auth import require_admin
from app.services.user import UserService

router = APIRouter()

def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)

@router.get("")
def read_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """
    Retrieve accounts. Only for admins.
    """
    users = service.get_all_users(skip=skip, limit=limit)
    return {"success": True, "users": [user.to_public_dict() for user in users]}
