"""
Built-in sample testimonials and blog posts for a fresh site.

These are only shown when INCLUDE_SEED_CONTENT is on, and a live record with
the same id (or, for posts, the same slug) always replaces its sample.
"""

from datetime import datetime
from typing import Optional

from .schemas import BlogPostResponse, TestimonialResponse

SEED_CREATED_AT = datetime(2024, 1, 1, 9, 0)

SEED_TESTIMONIALS = [
    TestimonialResponse(
        id="seed-testimonial-1",
        name="Sarah Johnson",
        org="Tech Innovations Ltd",
        rating=5,
        text=(
            "SRD Consulting transformed our communication strategy completely. Their strategic approach "
            "and attention to detail helped us navigate a complex product launch successfully."
        ),
        approved=True,
        created_at=SEED_CREATED_AT,
    ),
    TestimonialResponse(
        id="seed-testimonial-2",
        name="Michael Chen",
        org="Global Manufacturing Corp",
        rating=5,
        text=(
            "During our crisis situation, SRD provided exceptional guidance and support. Their crisis "
            "communication expertise helped us maintain stakeholder confidence."
        ),
        approved=True,
        created_at=SEED_CREATED_AT,
    ),
    TestimonialResponse(
        id="seed-testimonial-3",
        name="Emily Rodriguez",
        org="Healthcare Solutions Inc",
        rating=5,
        text=(
            "The team at SRD helped us develop a compelling brand story that resonated with our audience. "
            "Their creativity and strategic thinking are unmatched."
        ),
        approved=True,
        created_at=SEED_CREATED_AT,
    ),
]

SEED_BLOG_POSTS = [
    BlogPostResponse(
        id="seed-post-1",
        title="The Future of Strategic Communications",
        slug="future-of-strategic-communications",
        content="In an increasingly digital world, strategic communications must evolve...",
        tags=["Strategy", "Digital", "Future"],
        created_at=SEED_CREATED_AT,
    ),
    BlogPostResponse(
        id="seed-post-2",
        title="Crisis Communication Best Practices",
        slug="crisis-communication-best-practices",
        content="When crisis strikes, having a well-prepared communication strategy...",
        tags=["Crisis", "Management", "Best Practices"],
        created_at=SEED_CREATED_AT,
    ),
    BlogPostResponse(
        id="seed-post-3",
        title="Building Authentic Brand Stories",
        slug="building-authentic-brand-stories",
        content="Authentic storytelling is the cornerstone of effective brand communication...",
        tags=["Branding", "Storytelling", "Authenticity"],
        created_at=SEED_CREATED_AT,
    ),
]


def merge_testimonials(live: list[TestimonialResponse]) -> list[TestimonialResponse]:
    """Live testimonials first, then samples whose id is not already taken"""
    live_ids = {t.id for t in live}
    return live + [t for t in SEED_TESTIMONIALS if t.id not in live_ids]


def merge_blog_posts(live: list[BlogPostResponse]) -> list[BlogPostResponse]:
    live_ids = {p.id for p in live}
    live_slugs = {p.slug for p in live}
    return live + [p for p in SEED_BLOG_POSTS if p.id not in live_ids and p.slug not in live_slugs]


def seed_post_by_slug(slug: str) -> Optional[BlogPostResponse]:
    for post in SEED_BLOG_POSTS:
        if post.slug == slug:
            return post
    return None
