import re
from typing import Optional, List
from enum import Enum
from datetime import datetime
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import JSON, Text

from app.models.user import User, utcnow

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to one hyphen, trim hyphens."""
    return _NON_ALNUM.sub("-", title.lower()).strip("-")


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"

class BlogPost(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Author (fixed at creation)
    author_id: int = Field(foreign_key="user.id", index=True)
    author: Optional[User] = Relationship()

    # Content
    title: str = Field(index=True)
    slug: str = Field(unique=True, index=True)  # URL-friendly title
    content: str = Field(sa_column=Column(Text, nullable=False))
    excerpt: str
    tags: List[str] = Field(default=[], sa_column=Column(JSON))

    # Status
    status: PostStatus = Field(default=PostStatus.DRAFT, index=True)
    published_at: Optional[datetime] = None

    # Engagement
    views: int = Field(default=0)
    likes: int = Field(default=0)

    # Cover image (image_id is the media store key)
    cover_image: Optional[str] = None
    image_id: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_dict(self) -> dict:
        author = None
        if self.author is not None:
            author = {
                "id": self.author.id,
                "name": self.author.name,
                "image": self.author.image_url,
            }
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "content": self.content,
            "excerpt": self.excerpt,
            "tags": list(self.tags or []),
            "status": self.status.value if isinstance(self.status, PostStatus) else self.status,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "views": self.views,
            "likes": self.likes,
            "coverImage": self.cover_image,
            "imageId": self.image_id,
            "authorId": self.author_id,
            "author": author,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<BlogPost {self.slug}>"
