"""Content services - testimonials, blog, about page and contact messages"""

import logging
from typing import Any, Callable, Optional

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import INCLUDE_SEED_CONTENT
from ...errors import NotFoundError, PersistenceError, ValidationError
from ...models import About, BlogPost, ContactMessage, Testimonial
from ...shared.validators import slugify
from ...utils.file_storage import FileStorage
from ...utils.sanitization import sanitize_string
from . import seed
from .repository import AboutRepository, BlogRepository, ContactRepository, TestimonialRepository
from .schemas import (
    BlogPostCreate,
    BlogPostResponse,
    BlogPostUpdate,
    ContactCreate,
    TestimonialCreate,
    TestimonialResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_ABOUT_CONTENT = "Default About Us content. Please update via admin dashboard."


def persist_or_discard(db: Session, storage: FileStorage, stored_url: Optional[str], action: Callable[[], Any]):
    """Run a DB write; if it fails, roll back and drop the file that was stored for it"""
    try:
        return action()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Content write failed: {e}")
        if stored_url:
            storage.delete(stored_url)
        raise PersistenceError() from e


class TestimonialService:
    """Public testimonial submission and listing"""

    def __init__(self, db: Session, storage: FileStorage, include_seed: Optional[bool] = None):
        self.db = db
        self.storage = storage
        self.repo = TestimonialRepository()
        self.include_seed = INCLUDE_SEED_CONTENT if include_seed is None else include_seed

    def list_approved(self) -> list[TestimonialResponse]:
        live = [TestimonialResponse.model_validate(t) for t in self.repo.list_testimonials(self.db, approved_only=True)]
        return seed.merge_testimonials(live) if self.include_seed else live

    def list_all(self) -> list[Testimonial]:
        return self.repo.list_testimonials(self.db)

    async def submit(self, data: TestimonialCreate, photo: Optional[UploadFile] = None) -> Testimonial:
        """Store a testimonial for moderation. It stays hidden until approved."""
        photo_url = await self.storage.save_optional(photo, "testimonials")

        testimonial = persist_or_discard(
            self.db,
            self.storage,
            photo_url,
            lambda: self.repo.create_testimonial(
                self.db,
                name=sanitize_string(data.name),
                org=sanitize_string(data.org),
                rating=data.rating,
                text=sanitize_string(data.text),
                photo=photo_url,
                approved=False,
            ),
        )
        logger.info(f"📝 Testimonial {testimonial.id} submitted by {data.name}, awaiting approval")
        return testimonial


class BlogService:
    def __init__(self, db: Session, storage: FileStorage, include_seed: Optional[bool] = None):
        self.db = db
        self.storage = storage
        self.repo = BlogRepository()
        self.include_seed = INCLUDE_SEED_CONTENT if include_seed is None else include_seed

    def list_posts(self) -> list[BlogPostResponse]:
        live = [BlogPostResponse.model_validate(p) for p in self.repo.list_posts(self.db)]
        return seed.merge_blog_posts(live) if self.include_seed else live

    def list_all(self) -> list[BlogPost]:
        return self.repo.list_posts(self.db)

    def get_by_slug(self, slug: str) -> BlogPostResponse:
        post = self.repo.get_post_by_slug(self.db, slug)
        if post:
            return BlogPostResponse.model_validate(post)
        if self.include_seed:
            sample = seed.seed_post_by_slug(slug)
            if sample:
                return sample
        raise NotFoundError("Blog post not found")

    def get_post(self, post_id: str) -> BlogPost:
        post = self.repo.get_post(self.db, post_id)
        if not post:
            raise NotFoundError("Blog post not found")
        return post

    def unique_slug(self, title: str, exclude_id: Optional[str] = None) -> str:
        """Slug from the title, suffixed -2, -3, ... until no other post uses it"""
        base = slugify(title)
        if not base:
            raise ValidationError("Title must contain letters or numbers")
        candidate = base
        suffix = 2
        while self.repo.slug_exists(self.db, candidate, exclude_id):
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    async def create_post(self, data: BlogPostCreate, image: Optional[UploadFile] = None) -> BlogPost:
        slug = self.unique_slug(data.title)
        image_url = await self.storage.save_optional(image, "blog")

        post = persist_or_discard(
            self.db,
            self.storage,
            image_url,
            lambda: self.repo.create_post(
                self.db,
                title=data.title,
                slug=slug,
                content=data.content,
                image=image_url,
                tags=data.tags,
            ),
        )
        logger.info(f"✅ Blog post created: {post.slug}")
        return post

    async def update_post(self, post_id: str, data: BlogPostUpdate, image: Optional[UploadFile] = None) -> BlogPost:
        post = self.get_post(post_id)

        updates: dict[str, Any] = {}
        if data.title is not None and data.title != post.title:
            updates["title"] = data.title
            updates["slug"] = self.unique_slug(data.title, exclude_id=post.id)
        if data.content is not None:
            updates["content"] = data.content
        if data.tags is not None:
            updates["tags"] = data.tags

        old_image = post.image
        image_url = await self.storage.save_optional(image, "blog")
        if image_url:
            updates["image"] = image_url

        post = persist_or_discard(
            self.db, self.storage, image_url, lambda: self.repo.update_post(self.db, post, **updates)
        )

        if image_url and old_image and old_image != image_url:
            self.storage.delete(old_image)

        logger.info(f"✅ Blog post updated: {post.slug}")
        return post


class AboutService:
    def __init__(self, db: Session, storage: FileStorage):
        self.db = db
        self.storage = storage
        self.repo = AboutRepository()

    def get_about(self) -> About:
        """The about page row, created with placeholder content on first read"""
        about = self.repo.get_about(self.db)
        if about:
            return about

        logger.info("ℹ️ No about content yet, initializing default")
        return persist_or_discard(
            self.db, self.storage, None, lambda: self.repo.create_about(self.db, content=DEFAULT_ABOUT_CONTENT)
        )

    async def update_about(self, content: Optional[str], image: Optional[UploadFile] = None) -> About:
        about = self.get_about()
        old_image = about.image

        updates: dict[str, Any] = {}
        if content and content.strip():
            updates["content"] = content.strip()

        image_url = await self.storage.save_optional(image, "about")
        if image_url:
            updates["image"] = image_url

        about = persist_or_discard(
            self.db, self.storage, image_url, lambda: self.repo.update_about(self.db, about, **updates)
        )

        if image_url and old_image and old_image != image_url:
            self.storage.delete(old_image)

        logger.info("✅ About content updated")
        return about


class ContactService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ContactRepository()

    def submit(self, data: ContactCreate) -> ContactMessage:
        try:
            message = self.repo.create_message(
                self.db,
                name=sanitize_string(data.name),
                email=data.email,
                phone=data.phone,
                subject=sanitize_string(data.subject),
                message=sanitize_string(data.message),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to store contact message from {data.email}: {e}")
            raise PersistenceError() from e

        logger.info(f"📨 Contact message {message.id} received from {data.email}")
        return message

    def list_messages(self) -> list[ContactMessage]:
        return self.repo.list_messages(self.db)

    def get_message(self, message_id: str) -> ContactMessage:
        message = self.repo.get_message(self.db, message_id)
        if not message:
            raise NotFoundError("Contact message not found")
        return message
