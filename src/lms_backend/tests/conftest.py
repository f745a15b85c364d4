"""
Pytest configuration and fixtures for all tests.

Tests run against an in-memory SQLite database shared by every session of a
test through a StaticPool, so the FastAPI TestClient thread and the click
commands see the same data as the test itself.
"""

import itertools
import os
import sys
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure lms_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from lms_backend.model import Base, Course, CourseEnrollment, Page, Role, User, UserRole
from lms_backend.permissions import cache as acl_cache
from lms_backend.permissions.auth import PrincipalBuilder
from lms_backend.seeder import seed_builtin_roles
from lms_backend.settings import settings


@pytest.fixture(autouse=True)
def acl_settings(monkeypatch):
    """Pin the ACL settings so the environment cannot change test outcomes."""
    monkeypatch.setattr(settings, "ACL_CACHE_ENABLED", False)
    monkeypatch.setattr(settings, "ACL_TEACHING_ASSISTANT_ACCESS", "none")
    monkeypatch.setattr(settings, "ACL_STUDENT_ROLE", "student")
    monkeypatch.setattr(acl_cache, "acl_entry_cache", None)
    return settings


@pytest.fixture
def engine():
    """Create database engine."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def Session(engine):
    """Create session factory."""
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def session(Session):
    """Create a new database session for a test."""
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def roles(session):
    """Seed the builtin roles and return their ids by name."""
    seed_builtin_roles(session)
    return {name: role_id for role_id, name in session.query(Role.id, Role.name).all()}


class LmsFactory:
    """Creates committed users, courses and content items for a test."""

    def __init__(self, session):
        self.session = session
        self._counter = itertools.count(1)

    def _save(self, entity):
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def user(self, *role_names: str) -> User:
        n = next(self._counter)
        user = self._save(User(given_name="Test", family_name=f"User {n}", username=f"user{n}", email=f"user{n}@example.com"))

        for name in role_names:
            role = self.session.query(Role).filter(Role.name == name).first()
            if role is None:
                role = self._save(Role(name=name))
            self.session.add(UserRole(user_id=user.id, role_id=role.id))
        self.session.commit()

        return user

    def principal(self, user: User):
        return PrincipalBuilder.build(user.id, self.session)

    def course(self, instructor: User = None) -> Course:
        n = next(self._counter)
        return self._save(Course(
            title=f"Course {n}",
            code=f"C{n}",
            instructor_id=instructor.id if instructor is not None else None,
        ))

    def enroll(self, user: User, course: Course) -> CourseEnrollment:
        return self._save(CourseEnrollment(course_id=course.id, user_id=user.id))

    def content(self, model=Page, course: Course = None, creator: User = None, is_public: bool = False, **kwargs):
        n = next(self._counter)
        return self._save(model(
            title=kwargs.pop("title", f"{model.__name__} {n}"),
            course_id=course.id if course is not None else None,
            created_by=creator.id if creator is not None else None,
            is_public=is_public,
            **kwargs,
        ))


@pytest.fixture
def factory(session):
    return LmsFactory(session)
