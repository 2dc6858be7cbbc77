from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel
from sqlmodel import Session

from app.core.security import Identity
from app.db.session import get_session
from app.routers.auth import get_current_identity, read_image
from app.services.blog import BlogService, PostUpdate, parse_status, parse_tags
from app.services.s3 import MediaStore, get_media_store
from app.services.summary import SummaryService, get_summary_service

router = APIRouter()


class SummaryRequest(BaseModel):
    title: str
    content: Optional[str] = None


def get_blog_service(
    session: Session = Depends(get_session),
    media: MediaStore = Depends(get_media_store),
) -> BlogService:
    return BlogService(session, media)


@router.post("/create", status_code=201)
async def create_post(
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),  # JSON array or comma separated
    status: Optional[str] = Form(None),
    coverImage: Optional[UploadFile] = File(None),
    identity: Identity = Depends(get_current_identity),
    service: BlogService = Depends(get_blog_service),
):
    cover = await read_image(coverImage)
    post = service.create_post(
        identity,
        title=title,
        content=content,
        excerpt=excerpt,
        tags=parse_tags(tags),
        status=parse_status(status),
        cover=cover,
    )
    return {"success": True, "message": "Blog post created successfully", "posts": post.to_dict()}

@router.post("/summary")
def generate_summary(
    data: SummaryRequest,
    identity: Identity = Depends(get_current_identity),
    summarizer: SummaryService = Depends(get_summary_service),
):
    """Suggest an excerpt for a post from its title (and optionally its content)."""
    return {"success": True, "summary": summarizer.summarize(data.title, data.content)}

@router.get("")
def list_posts(
    status: str = Query("published"),
    page: int = Query(1),
    limit: int = Query(10),
    service: BlogService = Depends(get_blog_service),
):
    result = service.list_posts(status=status, page=page, limit=limit)
    result["posts"] = [post.to_dict() for post in result["posts"]]
    return {"success": True, **result}

@router.get("/author/{author_id}")
def read_posts_by_author(author_id: int, service: BlogService = Depends(get_blog_service)):
    posts = service.get_by_author(author_id)
    return {"success": True, "posts": [post.to_dict() for post in posts]}

@router.get("/{slug}")
def read_post(slug: str, service: BlogService = Depends(get_blog_service)):
    return {"success": True, "post": service.get_by_slug(slug).to_dict()}

@router.put("/{post_id}")
async def update_post(
    post_id: int,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    coverImage: Optional[UploadFile] = File(None),
    identity: Identity = Depends(get_current_identity),
    service: BlogService = Depends(get_blog_service),
):
    patch = PostUpdate(
        title=title,
        content=content,
        excerpt=excerpt,
        tags=parse_tags(tags) if tags is not None else None,
        status=parse_status(status),
    )
    cover = await read_image(coverImage)
    post = service.update_post(identity, post_id, patch, cover=cover)
    return {"success": True, "message": "Blog post updated successfully", "post": post.to_dict()}

@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    identity: Identity = Depends(get_current_identity),
    service: BlogService = Depends(get_blog_service),
):
    service.delete_post(identity, post_id)
    return {"success": True, "message": "Blog post deleted successfully"}
