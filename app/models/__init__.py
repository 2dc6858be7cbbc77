# Import all models to register them with SQLModel
from app.models.user import User, UserRole
from app.models.blog import BlogPost, PostStatus, slugify

__all__ = [
    "User",
    "UserRole",
    "BlogPost",
    "PostStatus",
    "slugify",
]
