"""
Lookups the ACL engine needs from the host application.

The ABCs describe what the engine asks for; the Database* classes answer
from the SQLAlchemy models of this package.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type
from sqlalchemy.orm import Session

from lms_backend.model.course import Course, CourseEnrollment
from lms_backend.model.role import Role
from lms_backend.interface.permissions import ContentKind
from lms_backend.permissions.registry import content_registry

# Populates the content registry
import lms_backend.permissions.core  # noqa: F401


class RoleLookup(ABC):
    """Resolves role names to the identifiers used as ACL grantee ids"""

    @abstractmethod
    def get_role_id(self, name: str) -> Optional[int]:
        pass


class CourseLookup(ABC):
    """Resolves the course of a content item and enrollment relationships"""

    @abstractmethod
    def get_course(self, content: Any) -> Optional[Course]:
        pass

    @abstractmethod
    def is_enrolled(self, user_id: Optional[int], course: Course) -> bool:
        pass

    def instructor_id(self, course: Optional[Course]) -> Optional[int]:
        if course is None:
            return None
        return course.instructor_id


class DatabaseRoleLookup(RoleLookup):

    def __init__(self, db: Session):
        self.db = db
        self._ids: Dict[str, Optional[int]] = {}

    def get_role_id(self, name: str) -> Optional[int]:
        # Memoized per lookup instance, which lives as long as its session
        if name not in self._ids:
            row = self.db.query(Role.id).filter(Role.name == name).first()
            self._ids[name] = row[0] if row is not None else None
        return self._ids[name]


class DatabaseCourseLookup(CourseLookup):

    def __init__(self, db: Session):
        self.db = db

    def get_course(self, content: Any) -> Optional[Course]:
        course_id = getattr(content, "course_id", None)
        if course_id is None:
            return None
        return self.db.query(Course).filter(Course.id == course_id).first()

    def is_enrolled(self, user_id: Optional[int], course: Course) -> bool:
        if user_id is None or course is None:
            return False
        return self.db.query(CourseEnrollment.id).filter(
            CourseEnrollment.course_id == course.id,
            CourseEnrollment.user_id == user_id,
        ).first() is not None


class ContentLoader:
    """Loads content items through the kind -> model dispatch table"""

    def __init__(self, db: Session):
        self.db = db

    def model_for(self, kind: Any) -> Type[Any]:
        return content_registry.get_model(kind)

    def load(self, kind: Any, content_id: Any) -> Optional[Any]:
        model = self.model_for(kind)
        try:
            content_id = int(content_id)
        except (TypeError, ValueError):
            return None
        return self.db.query(model).filter(model.id == content_id).first()

    def query(self, kind: ContentKind):
        return self.db.query(self.model_for(kind))
