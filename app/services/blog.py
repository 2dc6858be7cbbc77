import json
import logging
import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.core.security import Identity
from app.models.blog import BlogPost, PostStatus, slugify
from app.models.user import utcnow
from app.services.s3 import ImageUpload, MediaStore

logger = logging.getLogger(__name__)

STATUS_ALL = "all"


class PostUpdate(BaseModel):
    """Partial update; fields left as None are not touched."""
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[PostStatus] = None


def parse_tags(raw: Optional[str]) -> List[str]:
    """Accept a JSON array (``'["a", "b"]'``) or a comma separated string."""
    if raw is None or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None
    if isinstance(parsed, str):
        parsed = [parsed]
    elif not isinstance(parsed, list):
        # Scalars such as "2024" or "null" are plain tags
        parsed = raw.split(",")
    return [str(tag).strip() for tag in parsed if str(tag).strip()]


def require_text(value: Optional[str], field: str) -> str:
    """Strip a required text field, rejecting missing or blank values."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def parse_status(raw: Optional[str]) -> Optional[PostStatus]:
    if raw is None or raw == "":
        return None
    try:
        return PostStatus(raw)
    except ValueError:
        raise ValidationError(f"Invalid status '{raw}', expected draft or published")


class BlogService:
    def __init__(self, session: Session, media: MediaStore):
        self.session = session
        self.media = media

    def _commit(self, post: BlogPost, action: str) -> BlogPost:
        try:
            self.session.add(post)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("A blog post with this title already exists")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Failed to %s blog post", action)
            raise StorageError(f"Failed to {action} blog post: {e}")
        self.session.refresh(post)
        return post

    def _upload_cover(self, cover: ImageUpload):
        return self.media.upload(cover.content, cover.filename, folder="blogs", content_type=cover.content_type)

    def _check_owner(self, identity: Identity, post: BlogPost, action: str):
        if post.author_id != identity.id and not identity.is_admin:
            raise ForbiddenError(f"You are not authorized to {action} this blog post")

    def create_post(
        self,
        identity: Identity,
        title: Optional[str],
        content: Optional[str],
        excerpt: Optional[str],
        tags: Optional[List[str]] = None,
        status: Optional[PostStatus] = None,
        cover: Optional[ImageUpload] = None,
    ) -> BlogPost:
        title = require_text(title, "Title")
        content = require_text(content, "Content")
        excerpt = require_text(excerpt, "Excerpt")

        slug = slugify(title)
        if not slug:
            raise ValidationError("Title must contain at least one letter or digit")

        status = status or PostStatus.DRAFT
        post = BlogPost(
            title=title,
            slug=slug,
            content=content,
            excerpt=excerpt,
            tags=tags or [],
            status=status,
            published_at=utcnow() if status == PostStatus.PUBLISHED else None,
            author_id=identity.id,
        )

        if cover:
            post.cover_image, post.image_id = self._upload_cover(cover)

        image_id = post.image_id
        try:
            post = self._commit(post, "create")
        except (ConflictError, StorageError):
            # Keep the media store in step with the database
            self.media.destroy(image_id)
            raise

        logger.info("User %s created post %s (%s)", identity.id, post.id, post.status.value)
        return post

    def list_posts(self, status: Optional[str] = PostStatus.PUBLISHED.value, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive")

        status = status or PostStatus.PUBLISHED.value
        query = select(BlogPost)
        count_query = select(func.count(BlogPost.id))
        if status != STATUS_ALL:
            post_status = parse_status(status)
            query = query.where(BlogPost.status == post_status)
            count_query = count_query.where(BlogPost.status == post_status)

        offset = (page - 1) * limit
        posts = self.session.exec(
            query.order_by(desc(BlogPost.created_at), desc(BlogPost.id)).offset(offset).limit(limit)
        ).all()

        total_posts = self.session.exec(count_query).one()
        drafts = self.session.exec(
            select(func.count(BlogPost.id)).where(BlogPost.status == PostStatus.DRAFT)
        ).one()
        published = self.session.exec(
            select(func.count(BlogPost.id)).where(BlogPost.status == PostStatus.PUBLISHED)
        ).one()
        all_posts = self.session.exec(select(func.count(BlogPost.id))).one()

        return {
            "posts": posts,
            "page": page,
            "totalPages": math.ceil(total_posts / limit),
            "totalPosts": total_posts,
            "count": {
                "all": all_posts,
                "drafts": drafts,
                "published": published,
            },
        }

    def get_post(self, post_id: int) -> BlogPost:
        post = self.session.get(BlogPost, post_id)
        if not post:
            raise NotFoundError("Blog post not found")
        return post

    def get_by_slug(self, slug: str) -> BlogPost:
        post = self.session.exec(select(BlogPost).where(BlogPost.slug == slug)).first()
        if not post:
            raise NotFoundError("Blog post not found")
        return post

    def get_by_author(self, author_id: int) -> List[BlogPost]:
        posts = self.session.exec(
            select(BlogPost)
            .where(BlogPost.author_id == author_id)
            .order_by(desc(BlogPost.created_at), desc(BlogPost.id))
        ).all()
        if not posts:
            raise NotFoundError("No blog posts found for this author")
        return posts

    def update_post(
        self,
        identity: Identity,
        post_id: int,
        patch: PostUpdate,
        cover: Optional[ImageUpload] = None,
    ) -> BlogPost:
        post = self.get_post(post_id)
        self._check_owner(identity, post, "update")

        # Validate everything before touching the stored post
        title = require_text(patch.title, "Title") if patch.title is not None else None
        content = require_text(patch.content, "Content") if patch.content is not None else None
        excerpt = require_text(patch.excerpt, "Excerpt") if patch.excerpt is not None else None
        slug = slugify(title) if title is not None else None
        if title is not None and not slug:
            raise ValidationError("Title must contain at least one letter or digit")

        if title is not None:
            post.title = title
            post.slug = slug
        if content is not None:
            post.content = content
        if excerpt is not None:
            post.excerpt = excerpt
        if patch.tags is not None:
            post.tags = patch.tags
        if patch.status is not None:
            post.status = patch.status
            # publishedAt is stamped once, on the first publish
            if patch.status == PostStatus.PUBLISHED and post.published_at is None:
                post.published_at = utcnow()

        old_image_id = None
        if cover:
            old_image_id = post.image_id
            post.cover_image, post.image_id = self._upload_cover(cover)

        new_image_id = post.image_id if cover else None
        post.updated_at = utcnow()
        try:
            post = self._commit(post, "update")
        except (ConflictError, StorageError):
            if new_image_id:
                self.media.destroy(new_image_id)
            raise

        # The new cover is stored; the old asset is orphaned if this fails
        if old_image_id and not self.media.destroy(old_image_id):
            logger.warning("Orphaned cover asset %s for post %s", old_image_id, post.id)

        logger.info("User %s updated post %s", identity.id, post.id)
        return post

    def delete_post(self, identity: Identity, post_id: int) -> None:
        post = self.get_post(post_id)
        self._check_owner(identity, post, "delete")

        if post.image_id and not self.media.destroy(post.image_id):
            raise StorageError("Failed to delete cover image")

        try:
            self.session.delete(post)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Failed to delete blog post %s", post_id)
            raise StorageError(f"Failed to delete blog post: {e}")

        logger.info("User %s deleted post %s", identity.id, post_id)
