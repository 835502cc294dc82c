"""Course and course topic routes."""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.security import get_current_admin
from app.db.sessions import get_db
from app.models import Course, CourseTopic, User


router = APIRouter(tags=["Courses"])


class CourseWriteRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None


class CourseResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    created_at: str


class TopicWriteRequest(BaseModel):
    title: str = Field(min_length=1)
    content: Optional[str] = None
    order: int = 0


class TopicResponse(BaseModel):
    id: str
    course_id: str
    title: str
    content: Optional[str]
    order: int


def _course_response(course: Course) -> CourseResponse:
    return CourseResponse(
        id=str(course.id),
        title=course.title,
        description=course.description,
        created_at=course.created_at.isoformat(),
    )


def _topic_response(topic: CourseTopic) -> TopicResponse:
    return TopicResponse(
        id=str(topic.id),
        course_id=str(topic.course_id),
        title=topic.title,
        content=topic.content,
        order=topic.order,
    )


def _require_course(db: Session, course_id: uuid.UUID) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


def _require_topic(db: Session, topic_id: uuid.UUID) -> CourseTopic:
    topic = db.query(CourseTopic).filter(CourseTopic.id == topic_id).first()
    if not topic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found")
    return topic


@router.get("/courses", response_model=List[CourseResponse])
def list_courses(db: Session = Depends(get_db)):
    courses = db.query(Course).order_by(Course.created_at.asc()).all()
    return [_course_response(c) for c in courses]


@router.get("/courses/{course_id}/topics", response_model=List[TopicResponse])
def list_topics(course_id: uuid.UUID, db: Session = Depends(get_db)):
    """Topics of one course in display order."""
    _require_course(db, course_id)
    topics = db.query(CourseTopic).filter(
        CourseTopic.course_id == course_id
    ).order_by(CourseTopic.order.asc(), CourseTopic.created_at.asc()).all()
    return [_topic_response(t) for t in topics]


@router.post("/admin/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(request: CourseWriteRequest, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    course = Course(**request.model_dump())
    db.add(course)
    db.commit()
    db.refresh(course)
    return _course_response(course)


@router.put("/admin/courses/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: uuid.UUID,
    request: CourseWriteRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    course = _require_course(db, course_id)
    for key, value in request.model_dump().items():
        setattr(course, key, value)
    db.commit()
    return _course_response(course)


@router.delete("/admin/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: uuid.UUID, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    """Deleting a course removes its topics and their MCQ links."""
    course = _require_course(db, course_id)
    db.delete(course)
    db.commit()


@router.post("/admin/courses/{course_id}/topics", response_model=TopicResponse, status_code=status.HTTP_201_CREATED)
def create_topic(
    course_id: uuid.UUID,
    request: TopicWriteRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    _require_course(db, course_id)
    topic = CourseTopic(course_id=course_id, created_by=admin.id, **request.model_dump())
    db.add(topic)
    db.commit()
    db.refresh(topic)
    return _topic_response(topic)


@router.put("/admin/course-topics/{topic_id}", response_model=TopicResponse)
def update_topic(
    topic_id: uuid.UUID,
    request: TopicWriteRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    topic = _require_topic(db, topic_id)
    for key, value in request.model_dump().items():
        setattr(topic, key, value)
    db.commit()
    return _topic_response(topic)


@router.delete("/admin/course-topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(topic_id: uuid.UUID, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    topic = _require_topic(db, topic_id)
    db.delete(topic)
    db.commit()
