"""Static page, navigation and blog routes."""
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.security import get_current_admin
from app.db.sessions import get_db
from app.models import Blog, StaticPage, User
from app.services.navigation import get_navigation, navigation_cache


router = APIRouter(tags=["Pages"])


REFUND_POLICY_FALLBACK = """# Return and Refund Policy

Thank you for subscribing to Study Prometric MCQs. We want to ensure you have a clear understanding of our return and refund policy.

## Subscription Cancellation and Refunds

1. **Monthly Subscriptions:** Monthly subscriptions can be cancelled at any time. Cancellation will take effect at the end of your current billing cycle. We do not offer refunds for partial months of service.
2. **Annual Subscriptions:** Annual subscriptions can be cancelled at any time. If cancelled within the first 30 days of purchase, you are eligible for a full refund. After 30 days, we do not offer prorated refunds.
3. **Free Trial:** If you are on a free trial, you can cancel at any time without charge.
"""

ABOUT_US_FALLBACK = """# About Study Prometric

Study Prometric helps doctors, nurses and pharmacists prepare for Gulf licensing exams (DHA, MOH, HAAD, SMLE, OMSB, QCHP) with a curated MCQ bank, topic guides and clinical cases.
"""

# slug -> (title, markdown) served when the CMS has no row or an empty body
FALLBACK_PAGES: Dict[str, tuple] = {
    "refund": ("Return & Refund Policy", REFUND_POLICY_FALLBACK),
    "about-us": ("About Us", ABOUT_US_FALLBACK),
}


class PageResponse(BaseModel):
    slug: str
    title: str
    content: str
    is_fallback: bool = False


class PageWriteRequest(BaseModel):
    slug: str = Field(min_length=1, max_length=200)
    title: str = Field(min_length=1)
    content: Optional[str] = None
    location: List[str] = []


class NavLink(BaseModel):
    slug: str
    title: str
    location: List[str]


class NavigationResponse(BaseModel):
    header_links: List[NavLink]
    footer_links: List[NavLink]


class BlogSummary(BaseModel):
    slug: str
    title: str
    meta_description: Optional[str]
    created_at: str


class BlogResponse(BlogSummary):
    content: Optional[str]
    keywords: List[str]


def page_not_found_message(slug: str) -> str:
    return f'The page you\'re looking for at "/{slug}" could not be found.'


@router.get("/pages/navigation", response_model=NavigationResponse)
def navigation(db: Session = Depends(get_db)):
    """Header and footer links built from the static pages table."""
    return get_navigation(db)


@router.get("/pages/{slug}", response_model=PageResponse)
def get_page(slug: str, db: Session = Depends(get_db)):
    """
    Fetch one static page by slug.

    A missing row is a normal "not found" outcome: built-in fallback text
    is served for the pages that have one, anything else is a 404.
    """
    page = db.query(StaticPage).filter(StaticPage.slug == slug).first()
    fallback = FALLBACK_PAGES.get(slug)

    if page is None:
        if fallback is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=page_not_found_message(slug))
        title, content = fallback
        return PageResponse(slug=slug, title=title, content=content, is_fallback=True)

    if not page.content and fallback is not None:
        return PageResponse(slug=slug, title=page.title, content=fallback[1], is_fallback=True)

    return PageResponse(slug=page.slug, title=page.title, content=page.content or "")


@router.post("/pages", response_model=PageResponse, status_code=status.HTTP_201_CREATED)
def create_page(
    request: PageWriteRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    if db.query(StaticPage).filter(StaticPage.slug == request.slug).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Slug '{request.slug}' already exists")

    page = StaticPage(**request.model_dump())
    db.add(page)
    db.commit()
    navigation_cache.invalidate()
    return PageResponse(slug=page.slug, title=page.title, content=page.content or "")


@router.put("/pages/{page_id}", response_model=PageResponse)
def update_page(
    page_id: uuid.UUID,
    request: PageWriteRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    page = db.query(StaticPage).filter(StaticPage.id == page_id).first()
    if not page:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")

    taken = db.query(StaticPage.id).filter(StaticPage.slug == request.slug, StaticPage.id != page_id).first()
    if taken:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Slug '{request.slug}' already exists")

    for key, value in request.model_dump().items():
        setattr(page, key, value)
    page.updated_at = datetime.utcnow()
    db.commit()
    navigation_cache.invalidate()
    return PageResponse(slug=page.slug, title=page.title, content=page.content or "")


@router.delete("/pages/{page_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_page(
    page_id: uuid.UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    deleted = db.query(StaticPage).filter(StaticPage.id == page_id).delete(synchronize_session=False)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    db.commit()
    navigation_cache.invalidate()


@router.get("/blogs", response_model=List[BlogSummary])
def list_blogs(db: Session = Depends(get_db)):
    blogs = db.query(Blog).filter(Blog.status == "published").order_by(Blog.created_at.desc()).all()
    return [
        BlogSummary(slug=b.slug, title=b.title, meta_description=b.meta_description, created_at=b.created_at.isoformat())
        for b in blogs
    ]


@router.get("/blogs/{slug}", response_model=BlogResponse)
def get_blog(slug: str, db: Session = Depends(get_db)):
    blog = db.query(Blog).filter(Blog.slug == slug, Blog.status == "published").first()
    if not blog:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")
    return BlogResponse(
        slug=blog.slug,
        title=blog.title,
        meta_description=blog.meta_description,
        created_at=blog.created_at.isoformat(),
        content=blog.content,
        keywords=blog.keywords or []
    )
