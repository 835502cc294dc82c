"""AI generation and linking functions."""
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.errors import UpstreamServiceError
from app.core.security import get_current_admin
from app.db.sessions import get_db
from app.models import Blog, Course, User
from app.services.bulk_jobs import generate_course_topics, link_mcqs_to_topics, upload_mcqs
from app.services.gemini_service import GeminiService, get_gemini_service
from app.services.openai_service import OpenAIService, get_openai_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["AI Functions"])


# Request/Response schemas
class BulkUploadRequest(BaseModel):
    mcqs: Any = None


class BulkLinkRequest(BaseModel):
    mcq_ids: Optional[List[uuid.UUID]] = None


class BulkGenerateTopicsRequest(BaseModel):
    course_id: Optional[uuid.UUID] = None
    topic_titles: Optional[List[str]] = None
    user_id: Optional[uuid.UUID] = None


class BulkJobResponse(BaseModel):
    successCount: int
    errorCount: int
    errors: List[str]
    matchedCount: Optional[int] = None


class TopicContentRequest(BaseModel):
    topic_title: Optional[str] = None


class McqContentRequest(BaseModel):
    question: Optional[str] = None
    options: Optional[Dict[str, str]] = None


class McqContentResponse(BaseModel):
    correct_answer: Optional[str]
    explanation_text: str
    difficulty: str


class BlogPublishedResponse(BaseModel):
    message: str
    id: str
    slug: str


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


@router.post("/bulk-upload-mcqs")
def bulk_upload_mcqs(
    request: BulkUploadRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """
    Insert a batch of MCQs.

    Answers 207 when some items were rejected, 200 when all were stored.
    """
    if not isinstance(request.mcqs, list):
        raise _bad_request("Invalid input: Expected an array of MCQs.")

    result = upload_mcqs(db, request.mcqs)
    body = {"message": "Bulk upload process completed.", **result.as_response()}
    status_code = status.HTTP_207_MULTI_STATUS if result.error_count else status.HTTP_200_OK
    return JSONResponse(content=body, status_code=status_code)


@router.post("/bulk-link-mcqs-to-topics", response_model=BulkJobResponse, response_model_exclude_none=True)
def bulk_link_mcqs_to_topics(
    request: BulkLinkRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
    ai: OpenAIService = Depends(get_openai_service)
):
    """
    Link each MCQ to its best-matching course topic.

    Per-item failures are reported in ``errors`` and do not stop the batch.
    With no topics at all the whole call fails before any AI request.
    """
    if not request.mcq_ids:
        raise _bad_request("mcq_ids must be a non-empty array.")

    result = link_mcqs_to_topics(db, ai, request.mcq_ids)
    return result.as_response()


@router.post("/bulk-generate-course-topics", response_model=BulkJobResponse, response_model_exclude_none=True)
def bulk_generate_course_topics(
    request: BulkGenerateTopicsRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
    ai: OpenAIService = Depends(get_openai_service)
):
    """Generate a structured guide for each title and store it as a course topic."""
    if not request.course_id or not request.topic_titles:
        raise _bad_request("Missing required fields: course_id or topic_titles array.")

    if not db.query(Course.id).filter(Course.id == request.course_id).first():
        raise _bad_request(f"Course {request.course_id} not found.")

    result = generate_course_topics(
        db,
        ai,
        course_id=request.course_id,
        topic_titles=request.topic_titles,
        created_by=request.user_id or admin.id,
    )
    return result.as_response()


@router.post("/generate-course-topic-content")
def generate_course_topic_content(
    request: TopicContentRequest,
    admin: User = Depends(get_current_admin),
    gemini: GeminiService = Depends(get_gemini_service)
):
    """Draft one topic guide with Gemini; the caller decides whether to save it."""
    if not request.topic_title:
        raise _bad_request("Missing required field: topic_title.")

    try:
        text = gemini.generate_topic_content(request.topic_title)
    except UpstreamServiceError:
        raise
    except Exception as e:
        raise UpstreamServiceError(f"Error generating topic content: {str(e)}") from e
    return {"content": text}


@router.post("/generate-mcq-content", response_model=McqContentResponse)
def generate_mcq_content(
    request: McqContentRequest,
    admin: User = Depends(get_current_admin),
    ai: OpenAIService = Depends(get_openai_service)
):
    """Suggest answer, explanation and difficulty for a drafted MCQ."""
    if not request.question or not request.options:
        raise _bad_request("Missing required fields: question or options.")

    try:
        content = ai.generate_mcq_content(request.question, request.options)
    except UpstreamServiceError:
        raise
    except Exception as e:
        raise UpstreamServiceError(f"Error generating MCQ content: {str(e)}") from e
    return McqContentResponse(**content.model_dump())


@router.post("/auto-generate-blog", response_model=BlogPublishedResponse)
def auto_generate_blog(
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
    gemini: GeminiService = Depends(get_gemini_service)
):
    """Have Gemini write and publish one blog post."""
    logger.info("Generating blog content...")
    try:
        draft = gemini.generate_blog_post()
    except UpstreamServiceError:
        raise
    except Exception as e:
        logger.error("Auto-blog generation failed: %s", e)
        raise UpstreamServiceError(f"Auto-blog generation failed: {str(e)}") from e

    # timestamp suffix keeps repeated slugs unique
    suffix = str(int(time.time() * 1000))[-4:]
    blog = Blog(
        title=draft.title,
        slug=f"{draft.slug}-{suffix}",
        content=draft.content,
        meta_description=draft.meta_description,
        keywords=draft.keywords,
        status="published",
    )
    db.add(blog)
    db.commit()
    db.refresh(blog)

    logger.info("Published automated blog: %s", blog.title)
    return BlogPublishedResponse(message="Blog published successfully", id=str(blog.id), slug=blog.slug)
