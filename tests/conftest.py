"""Pytest configuration and shared fixtures for the API tests."""

import os

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["RESEND_API_KEY"] = "re_test_123"
os.environ["ADMIN_EMAIL"] = "admin@studyprometric.test"
os.environ["BASE_URL"] = "http://client.test"
os.environ["SITE_URL"] = "https://www.studyprometric.test"
os.environ["API_PUBLIC_URL"] = "http://api.test"

from types import SimpleNamespace
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.db.base import Base
from app.db.sessions import get_db
from app.main import app
from app.models import Course, CourseTopic, Mcq, User
from app.services.navigation import navigation_cache
from app.services.openai_service import OpenAIService


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def test_engine():
    """In-memory SQLite shared by the app and the test through one connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """TestClient wired to the test session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_navigation_cache():
    navigation_cache.invalidate()
    yield
    navigation_cache.invalidate()


# =============================================================================
# Users and auth
# =============================================================================


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(is_admin: bool = False, **fields: Any) -> User:
        counter["n"] += 1
        user = User(
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            password_hash=fields.pop("password_hash", "not-a-real-hash"),
            is_admin=is_admin,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def auth_headers_for() -> Callable[[User], dict]:
    return bearer


@pytest.fixture
def user(make_user) -> User:
    return make_user()


@pytest.fixture
def admin(make_user) -> User:
    return make_user(is_admin=True, email="admin@example.com")


@pytest.fixture
def user_headers(user) -> dict:
    return bearer(user)


@pytest.fixture
def admin_headers(admin) -> dict:
    return bearer(admin)


# =============================================================================
# Content
# =============================================================================


@pytest.fixture
def course(db_session: Session) -> Course:
    course = Course(title="Internal Medicine")
    db_session.add(course)
    db_session.commit()
    return course


@pytest.fixture
def make_topic(db_session: Session, course: Course) -> Callable[[str], CourseTopic]:
    def _make_topic(title: str) -> CourseTopic:
        topic = CourseTopic(course_id=course.id, title=title, content="{}")
        db_session.add(topic)
        db_session.commit()
        return topic

    return _make_topic


@pytest.fixture
def make_mcq(db_session: Session) -> Callable[[str], Mcq]:
    def _make_mcq(question_text: str) -> Mcq:
        mcq = Mcq(
            question_text=question_text,
            option_a="A",
            option_b="B",
            option_c="C",
            option_d="D",
            correct_answer="A",
        )
        db_session.add(mcq)
        db_session.commit()
        return mcq

    return _make_mcq


# =============================================================================
# OpenAI fakes
# =============================================================================


class FakeCompletions:
    """Stands in for ``client.chat.completions``.

    ``responder`` receives the create() kwargs and returns the message
    content, or an exception instance to raise.
    """

    def __init__(self, responder: Callable[[dict], Any]):
        self.responder = responder
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        content = self.responder(kwargs)
        if isinstance(content, Exception):
            raise content
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAIClient:
    def __init__(self, responder: Callable[[dict], Any]):
        self.completions = FakeCompletions(responder)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai():
    """Build an OpenAIService over a fake client and install it in the app."""
    from app.services.openai_service import get_openai_service

    def _install(responder: Callable[[dict], Any]) -> FakeOpenAIClient:
        fake_client = FakeOpenAIClient(responder)
        service = OpenAIService(client=fake_client)
        app.dependency_overrides[get_openai_service] = lambda: service
        return fake_client

    yield _install
    app.dependency_overrides.pop(get_openai_service, None)
