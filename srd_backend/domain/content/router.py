"""Content router - public site content and the admin editors behind it"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from ...auth import AdminCredential, get_current_admin
from ...database import get_db
from ...errors import validate_form
from ...rate_limiter import create_rate_limiter
from ...shared.responses import ok
from ...shared.validators import split_tags
from ...utils.file_storage import FileStorage, get_file_storage
from .schemas import (
    AboutResponse,
    BlogPostCreate,
    BlogPostResponse,
    BlogPostUpdate,
    ContactCreate,
    ContactResponse,
    TestimonialCreate,
    TestimonialResponse,
)
from .service import AboutService, BlogService, ContactService, TestimonialService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Content"])

testimonial_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="testimonials")
contact_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="contact")


def get_testimonial_service(
    db: Session = Depends(get_db), storage: FileStorage = Depends(get_file_storage)
) -> TestimonialService:
    return TestimonialService(db, storage)


def get_blog_service(db: Session = Depends(get_db), storage: FileStorage = Depends(get_file_storage)) -> BlogService:
    return BlogService(db, storage)


def get_about_service(db: Session = Depends(get_db), storage: FileStorage = Depends(get_file_storage)) -> AboutService:
    return AboutService(db, storage)


def get_contact_service(db: Session = Depends(get_db)) -> ContactService:
    return ContactService(db)


# ============================================================================
# TESTIMONIALS
# ============================================================================


@router.get("/testimonials")
async def list_testimonials(service: TestimonialService = Depends(get_testimonial_service)):
    """Approved testimonials, newest first"""
    return ok(service.list_approved())


@router.post("/testimonials", status_code=201)
async def submit_testimonial(
    name: Optional[str] = Form(None),
    text: Optional[str] = Form(None),
    org: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    _: None = Depends(testimonial_rate_limit),
    service: TestimonialService = Depends(get_testimonial_service),
):
    data = validate_form(TestimonialCreate, name=name, text=text, org=org or None, rating=rating or None)
    testimonial = await service.submit(data, photo)
    return ok(TestimonialResponse.model_validate(testimonial), message="Thank you! Your testimonial awaits review.")


@router.get("/admin/testimonials")
async def admin_list_testimonials(
    admin: AdminCredential = Depends(get_current_admin),
    service: TestimonialService = Depends(get_testimonial_service),
):
    return ok([TestimonialResponse.model_validate(t) for t in service.list_all()])


# ============================================================================
# BLOG
# ============================================================================


@router.get("/blog")
async def list_blog_posts(service: BlogService = Depends(get_blog_service)):
    return ok(service.list_posts())


@router.get("/blog/{slug}")
async def get_blog_post(slug: str, service: BlogService = Depends(get_blog_service)):
    return ok(service.get_by_slug(slug))


@router.get("/admin/blog-posts")
async def admin_list_blog_posts(
    admin: AdminCredential = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
):
    return ok([BlogPostResponse.model_validate(p) for p in service.list_all()])


@router.post("/admin/blog-posts", status_code=201)
async def create_blog_post(
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: AdminCredential = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
):
    """Create a post; tags arrive as a comma-separated string"""
    data = validate_form(BlogPostCreate, title=title, content=content, tags=split_tags(tags))
    post = await service.create_post(data, image)
    logger.info(f"📝 Admin {admin.email} published {post.slug}")
    return ok(BlogPostResponse.model_validate(post), message="Blog post created")


@router.put("/admin/blog-posts/{post_id}")
async def update_blog_post(
    post_id: str,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: AdminCredential = Depends(get_current_admin),
    service: BlogService = Depends(get_blog_service),
):
    data = validate_form(
        BlogPostUpdate,
        title=title,
        content=content,
        tags=split_tags(tags) if tags is not None else None,
    )
    post = await service.update_post(post_id, data, image)
    return ok(BlogPostResponse.model_validate(post), message="Blog post updated")


# ============================================================================
# ABOUT
# ============================================================================


@router.get("/about")
async def get_about(service: AboutService = Depends(get_about_service)):
    return ok(AboutResponse.model_validate(service.get_about()))


@router.put("/admin/about")
async def update_about(
    content: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: AdminCredential = Depends(get_current_admin),
    service: AboutService = Depends(get_about_service),
):
    about = await service.update_about(content, image)
    return ok(AboutResponse.model_validate(about), message="About content updated")


# ============================================================================
# CONTACT
# ============================================================================


@router.post("/contact", status_code=201)
async def submit_contact(
    data: ContactCreate,
    _: None = Depends(contact_rate_limit),
    service: ContactService = Depends(get_contact_service),
):
    message = service.submit(data)
    return ok(ContactResponse.model_validate(message), message="Message sent successfully")


@router.get("/admin/contact-messages")
async def list_contact_messages(
    admin: AdminCredential = Depends(get_current_admin),
    service: ContactService = Depends(get_contact_service),
):
    return ok([ContactResponse.model_validate(m) for m in service.list_messages()])


@router.get("/admin/contact-messages/{message_id}")
async def get_contact_message(
    message_id: str,
    admin: AdminCredential = Depends(get_current_admin),
    service: ContactService = Depends(get_contact_service),
):
    return ok(ContactResponse.model_validate(service.get_message(message_id)))
