"""Content repository - Database operations for site content"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import About, BlogPost, ContactMessage, Testimonial


class TestimonialRepository:
    @staticmethod
    def list_testimonials(db: Session, approved_only: bool = False) -> list[Testimonial]:
        query = db.query(Testimonial)
        if approved_only:
            query = query.filter(Testimonial.approved.is_(True))
        return query.order_by(Testimonial.created_at.desc()).all()

    @staticmethod
    def get_testimonial(db: Session, testimonial_id: str) -> Optional[Testimonial]:
        return db.query(Testimonial).filter(Testimonial.id == testimonial_id).first()

    @staticmethod
    def create_testimonial(db: Session, **data) -> Testimonial:
        testimonial = Testimonial(**data)
        db.add(testimonial)
        db.commit()
        db.refresh(testimonial)
        return testimonial

    @staticmethod
    def approve_testimonial(db: Session, testimonial: Testimonial) -> Testimonial:
        testimonial.approved = True
        db.commit()
        db.refresh(testimonial)
        return testimonial

    @staticmethod
    def delete_testimonial(db: Session, testimonial: Testimonial) -> None:
        db.delete(testimonial)
        db.commit()


class BlogRepository:
    @staticmethod
    def list_posts(db: Session) -> list[BlogPost]:
        return db.query(BlogPost).order_by(BlogPost.created_at.desc()).all()

    @staticmethod
    def get_post(db: Session, post_id: str) -> Optional[BlogPost]:
        return db.query(BlogPost).filter(BlogPost.id == post_id).first()

    @staticmethod
    def get_post_by_slug(db: Session, slug: str) -> Optional[BlogPost]:
        return db.query(BlogPost).filter(BlogPost.slug == slug).first()

    @staticmethod
    def slug_exists(db: Session, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = db.query(BlogPost.id).filter(BlogPost.slug == slug)
        if exclude_id:
            query = query.filter(BlogPost.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def create_post(db: Session, **data) -> BlogPost:
        post = BlogPost(**data)
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def update_post(db: Session, post: BlogPost, **updates) -> BlogPost:
        for key, value in updates.items():
            if hasattr(post, key):
                setattr(post, key, value)
        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def delete_post(db: Session, post: BlogPost) -> None:
        db.delete(post)
        db.commit()


class AboutRepository:
    @staticmethod
    def get_about(db: Session) -> Optional[About]:
        return db.query(About).order_by(About.id).first()

    @staticmethod
    def create_about(db: Session, **data) -> About:
        about = About(**data)
        db.add(about)
        db.commit()
        db.refresh(about)
        return about

    @staticmethod
    def update_about(db: Session, about: About, **updates) -> About:
        for key, value in updates.items():
            setattr(about, key, value)
        db.commit()
        db.refresh(about)
        return about


class ContactRepository:
    @staticmethod
    def list_messages(db: Session) -> list[ContactMessage]:
        return db.query(ContactMessage).order_by(ContactMessage.created_at.desc()).all()

    @staticmethod
    def get_message(db: Session, message_id: str) -> Optional[ContactMessage]:
        return db.query(ContactMessage).filter(ContactMessage.id == message_id).first()

    @staticmethod
    def create_message(db: Session, **data) -> ContactMessage:
        message = ContactMessage(**data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def delete_message(db: Session, message: ContactMessage) -> None:
        db.delete(message)
        db.commit()
