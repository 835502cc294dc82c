"""Sitemap, RSS and email functions."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_current_user
from app.db.sessions import get_db
from app.models import User
from app.services.email_service import EmailService, get_email_service
from app.services.feeds import build_rss, build_sitemap


router = APIRouter(prefix="/functions/v1", tags=["Feeds"])

XML_MEDIA_TYPE = "application/xml; charset=utf-8"


class SendEmailRequest(BaseModel):
    to: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None


@router.get("/generate-sitemap")
def generate_sitemap(db: Session = Depends(get_db)):
    xml = build_sitemap(db, settings.SITE_URL)
    return Response(content=xml, media_type=XML_MEDIA_TYPE)


@router.get("/rss-feed")
def rss_feed(db: Session = Depends(get_db)):
    feed_url = f"{settings.API_PUBLIC_URL.rstrip('/')}/functions/v1/rss-feed"
    xml = build_rss(db, settings.SITE_URL, feed_url)
    return Response(content=xml, media_type=XML_MEDIA_TYPE)


@router.post("/send-email")
def send_email(
    request: SendEmailRequest,
    current_user: User = Depends(get_current_user),
    email_service: EmailService = Depends(get_email_service)
):
    """Send an HTML email; ``to: "ADMIN_EMAIL"`` targets the site admin."""
    if not request.to or not request.subject or not request.body:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: to, subject, or body."
        )

    data = email_service.send(request.to, request.subject, request.body)
    return {"message": "Email sent successfully", "data": data}
