"""MCQ authoring plus the bookmark, feedback and review widgets."""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.security import get_current_admin, get_current_user
from app.db.sessions import get_db
from app.models import BookmarkedMcq, CourseTopic, Mcq, McqFeedback, McqTopicLink, Review, User


router = APIRouter(tags=["MCQs"])


class McqWriteRequest(BaseModel):
    question_text: str = Field(min_length=1)
    option_a: str = Field(min_length=1)
    option_b: str = Field(min_length=1)
    option_c: str = Field(min_length=1)
    option_d: str = Field(min_length=1)
    correct_answer: str = Field(pattern="^[ABCD]$")
    explanation_text: Optional[str] = None
    difficulty: Optional[str] = None
    topic_id: Optional[uuid.UUID] = None


class McqResponse(BaseModel):
    id: str
    question_text: str
    correct_answer: str
    difficulty: Optional[str]
    topic_id: Optional[str] = None


class BookmarkStatus(BaseModel):
    mcq_id: str
    is_bookmarked: bool


class FeedbackRequest(BaseModel):
    feedback_text: str = Field(min_length=1)


class FeedbackResponse(BaseModel):
    id: str
    mcq_id: str
    user_id: str
    feedback_text: str
    status: str
    created_at: str
    user_email: Optional[str] = None
    question_text: Optional[str] = None


class ReviewRequest(BaseModel):
    name: str = Field(min_length=2)
    rating: int = Field(ge=1, le=5)
    review_text: str = Field(min_length=10)


class ReviewResponse(BaseModel):
    id: str
    name: str
    rating: int
    review_text: str
    created_at: str


def _require_mcq(db: Session, mcq_id: uuid.UUID) -> Mcq:
    mcq = db.query(Mcq).filter(Mcq.id == mcq_id).first()
    if not mcq:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="MCQ not found")
    return mcq


def _feedback_response(fb: McqFeedback, with_details: bool = False) -> FeedbackResponse:
    return FeedbackResponse(
        id=str(fb.id),
        mcq_id=str(fb.mcq_id),
        user_id=str(fb.user_id),
        feedback_text=fb.feedback_text,
        status=fb.status,
        created_at=fb.created_at.isoformat(),
        user_email=fb.user.email if with_details and fb.user else None,
        question_text=fb.mcq.question_text if with_details and fb.mcq else None,
    )


@router.post("/admin/mcqs", response_model=McqResponse, status_code=status.HTTP_201_CREATED)
def create_mcq(request: McqWriteRequest, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    """Add one question, optionally linked to a course topic."""
    if request.topic_id and not db.query(CourseTopic.id).filter(CourseTopic.id == request.topic_id).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Topic {request.topic_id} not found")

    mcq = Mcq(**request.model_dump(exclude={"topic_id"}))
    db.add(mcq)
    db.flush()
    if request.topic_id:
        db.add(McqTopicLink(mcq_id=mcq.id, topic_id=request.topic_id))
    db.commit()
    return McqResponse(
        id=str(mcq.id),
        question_text=mcq.question_text,
        correct_answer=mcq.correct_answer,
        difficulty=mcq.difficulty,
        topic_id=str(request.topic_id) if request.topic_id else None,
    )


@router.get("/mcqs/{mcq_id}/bookmark", response_model=BookmarkStatus)
def bookmark_status(mcq_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    exists = db.query(BookmarkedMcq.id).filter(
        BookmarkedMcq.user_id == current_user.id,
        BookmarkedMcq.mcq_id == mcq_id
    ).first()
    return BookmarkStatus(mcq_id=str(mcq_id), is_bookmarked=exists is not None)


@router.post("/mcqs/{mcq_id}/bookmark/toggle", response_model=BookmarkStatus)
def toggle_bookmark(mcq_id: uuid.UUID, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Remove the bookmark if present, otherwise add it. Returns the new state."""
    _require_mcq(db, mcq_id)
    deleted = db.query(BookmarkedMcq).filter(
        BookmarkedMcq.user_id == current_user.id,
        BookmarkedMcq.mcq_id == mcq_id
    ).delete(synchronize_session=False)

    if not deleted:
        db.add(BookmarkedMcq(user_id=current_user.id, mcq_id=mcq_id))
    db.commit()
    return BookmarkStatus(mcq_id=str(mcq_id), is_bookmarked=not deleted)


@router.get("/bookmarks", response_model=List[str])
def list_bookmarks(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = db.query(BookmarkedMcq.mcq_id).filter(BookmarkedMcq.user_id == current_user.id).order_by(BookmarkedMcq.created_at.desc()).all()
    return [str(mcq_id) for (mcq_id,) in rows]


@router.post("/mcqs/{mcq_id}/feedback", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    mcq_id: uuid.UUID,
    request: FeedbackRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    _require_mcq(db, mcq_id)
    fb = McqFeedback(user_id=current_user.id, mcq_id=mcq_id, feedback_text=request.feedback_text, status="pending")
    db.add(fb)
    db.commit()
    db.refresh(fb)
    return _feedback_response(fb)


@router.get("/admin/mcq-feedback", response_model=List[FeedbackResponse])
def list_feedback(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    items = db.query(McqFeedback).order_by(McqFeedback.created_at.desc()).all()
    return [_feedback_response(fb, with_details=True) for fb in items]


@router.post("/admin/mcq-feedback/{feedback_id}/review", response_model=FeedbackResponse)
def mark_feedback_reviewed(feedback_id: uuid.UUID, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    fb = db.query(McqFeedback).filter(McqFeedback.id == feedback_id).first()
    if not fb:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")
    fb.status = "reviewed"
    db.commit()
    return _feedback_response(fb, with_details=True)


@router.get("/reviews", response_model=List[ReviewResponse])
def list_reviews(db: Session = Depends(get_db)):
    reviews = db.query(Review).order_by(Review.created_at.desc()).all()
    return [
        ReviewResponse(id=str(r.id), name=r.name, rating=r.rating, review_text=r.review_text, created_at=r.created_at.isoformat())
        for r in reviews
    ]


@router.post("/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def submit_review(request: ReviewRequest, db: Session = Depends(get_db)):
    review = Review(**request.model_dump())
    db.add(review)
    db.commit()
    db.refresh(review)
    return ReviewResponse(
        id=str(review.id),
        name=review.name,
        rating=review.rating,
        review_text=review.review_text,
        created_at=review.created_at.isoformat()
    )
