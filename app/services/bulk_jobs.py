"""Bulk jobs: MCQ upload, MCQ-to-topic linking and course topic generation.

Every job walks its input strictly in order, one item (and AI call) at a time. A
failure on one item is rolled back, recorded and skipped; it never aborts
the rest of the batch. Nothing is retried.
"""
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import UpstreamServiceError
from app.models import CourseTopic, Mcq, McqTopicLink
from app.services.openai_service import Matched, NoMatch, OpenAIService, ParseError

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    """Per-batch tally returned to the caller."""

    success_count: int = 0
    errors: List[str] = field(default_factory=list)
    matched_count: Optional[int] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def as_response(self) -> Dict:
        body = {
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "errors": self.errors,
        }
        if self.matched_count is not None:
            body["matchedCount"] = self.matched_count
        return body


def _replace_topic_link(db: Session, mcq_id: uuid.UUID, topic_id: Optional[uuid.UUID]) -> None:
    """Drop every link of ``mcq_id`` and add ``topic_id`` in one transaction."""
    db.query(McqTopicLink).filter(McqTopicLink.mcq_id == mcq_id).delete(synchronize_session=False)
    if topic_id is not None:
        db.add(McqTopicLink(mcq_id=mcq_id, topic_id=topic_id))
    db.commit()


def link_mcqs_to_topics(db: Session, ai: OpenAIService, mcq_ids: Sequence[uuid.UUID]) -> BulkResult:
    """
    Assign each MCQ to the single best-matching course topic.

    Args:
        db: Database session
        ai: Service used for the per-question completion
        mcq_ids: Non-empty list of question ids

    Returns:
        BulkResult where success + error equals ``len(mcq_ids)``

    Raises:
        UpstreamServiceError: No topics exist, or they cannot be loaded.
            Raised before any AI call is made.
    """
    try:
        topics = db.query(CourseTopic).all()
    except SQLAlchemyError as e:
        raise UpstreamServiceError(f"Failed to load course topics: {e}") from e
    if not topics:
        raise UpstreamServiceError("No course topics found to link to.")

    try:
        mcqs = db.query(Mcq).filter(Mcq.id.in_(list(mcq_ids))).all()
    except SQLAlchemyError as e:
        raise UpstreamServiceError(f"Failed to load MCQs: {e}") from e
    by_id = {m.id: m for m in mcqs}

    result = BulkResult(matched_count=0)
    for mcq_id in mcq_ids:
        mcq = by_id.get(mcq_id)
        if mcq is None:
            result.errors.append(f"MCQ {mcq_id}: not found")
            continue

        try:
            match = ai.match_topic(mcq.question_text, topics)
            if isinstance(match, ParseError):
                raise ValueError(match.reason)

            if isinstance(match, Matched):
                _replace_topic_link(db, mcq.id, match.topic.id)
                result.matched_count += 1
            elif isinstance(match, NoMatch):
                _replace_topic_link(db, mcq.id, None)
            result.success_count += 1
        except Exception as e:
            db.rollback()
            logger.warning("Topic linking failed for MCQ %s: %s", mcq_id, e)
            result.errors.append(f"MCQ {mcq_id}: {e}")

    logger.info(
        "Linked %d/%d MCQs to topics (%d errors)",
        result.matched_count, len(mcq_ids), result.error_count,
    )
    return result


def generate_course_topics(
    db: Session,
    ai: OpenAIService,
    course_id: uuid.UUID,
    topic_titles: Sequence[str],
    created_by: Optional[uuid.UUID] = None,
) -> BulkResult:
    """
    Generate and insert one structured topic row per title.

    Re-running with the same titles inserts duplicates; callers decide
    which titles to send.
    """
    result = BulkResult()
    for title in topic_titles:
        try:
            content = ai.generate_topic_content(title)
            db.add(CourseTopic(
                course_id=course_id,
                title=title,
                content=json.dumps(content.model_dump()),
                order=0,
                created_by=created_by,
            ))
            db.commit()
            result.success_count += 1
        except Exception as e:
            db.rollback()
            logger.warning("Topic generation failed for %r: %s", title, e)
            result.errors.append(f'Failed to generate topic "{title}": {e}')

    logger.info("Generated %d/%d course topics", result.success_count, len(topic_titles))
    return result


class McqOptions(BaseModel):
    A: str = Field(min_length=1)
    B: str = Field(min_length=1)
    C: str = Field(min_length=1)
    D: str = Field(min_length=1)


class McqUpload(BaseModel):
    """One question of an upload batch."""

    question: str = Field(min_length=1)
    options: McqOptions
    correct_answer: str = Field(pattern="^[ABCD]$")
    explanation: Optional[str] = None
    difficulty: Optional[str] = None


def _upload_label(item) -> str:
    question = item.get("question") if isinstance(item, dict) else None
    return f"{str(question or '')[:50]}..."


def _first_validation_message(error: ValidationError) -> str:
    detail = error.errors()[0]
    location = ".".join(str(part) for part in detail.get("loc", ()))
    return f"{location}: {detail.get('msg')}" if location else detail.get("msg", str(error))


def upload_mcqs(db: Session, items: Sequence) -> BulkResult:
    """
    Insert raw upload items as MCQ rows, one transaction per item.

    Invalid items are reported by their question prefix and skipped.
    """
    result = BulkResult()
    for item in items:
        try:
            upload = McqUpload.model_validate(item)
            db.add(Mcq(
                question_text=upload.question,
                option_a=upload.options.A,
                option_b=upload.options.B,
                option_c=upload.options.C,
                option_d=upload.options.D,
                correct_answer=upload.correct_answer,
                explanation_text=upload.explanation,
                difficulty=upload.difficulty,
            ))
            db.commit()
            result.success_count += 1
        except ValidationError as e:
            result.errors.append(f'Failed to process MCQ "{_upload_label(item)}": {_first_validation_message(e)}')
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("MCQ upload failed: %s", e)
            result.errors.append(f'Failed to process MCQ "{_upload_label(item)}": {e}')

    logger.info("Uploaded %d/%d MCQs", result.success_count, len(items))
    return result
