from typing import List
from sqlmodel import Session, select
from app.models.user import User

class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get_all_users(self, skip: int = 0, limit: int = 100) -> List[User]:
        return self.session.exec(select(User).order_by(User.id).offset(skip).limit(limit)).all()
