"""
Authorizable content items.

Every model here carries `AuthorizableMixin` and a `__content_kind__`; the
content ACL engine addresses rows through their `content_ref`.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func, text
)
from sqlalchemy.orm import backref, declared_attr, relationship

from lms_backend.interface.permissions import ContentKind, ContentRef
from .base import Base


class AuthorizableMixin:
    """Columns shared by all ACL-controlled content tables."""

    __content_kind__: ContentKind = None
    # Name of the Course collection holding the items of this model
    __course_collection__: str = None

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    title = Column(String(255), nullable=False)
    status = Column(String(32), nullable=False, server_default=text("'draft'"))
    is_public = Column(Boolean, nullable=False, server_default=text("false"), default=False)

    @declared_attr
    def course_id(cls):
        return Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=True, index=True)

    @declared_attr
    def created_by(cls):
        return Column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True)

    @declared_attr
    def course(cls):
        # Deleting a course deletes its items through the session, which fires
        # the ACL cleanup hook of each item
        return relationship('Course', backref=backref(cls.__course_collection__, cascade='all'))

    @declared_attr
    def creator(cls):
        return relationship('User')

    @property
    def content_ref(self) -> ContentRef:
        if self.id is None:
            raise ValueError(f"{type(self).__name__} has no id yet, flush it before referencing its ACL")
        return ContentRef(kind=self.__content_kind__, id=self.id)


class CourseModule(AuthorizableMixin, Base):
    __tablename__ = 'course_module'
    __content_kind__ = ContentKind.MODULE
    __course_collection__ = 'modules'

    description = Column(String(4096))
    position = Column(Integer, nullable=False, server_default=text("0"))


class Page(AuthorizableMixin, Base):
    __tablename__ = 'page'
    __content_kind__ = ContentKind.PAGE
    __course_collection__ = 'pages'

    module_id = Column(ForeignKey('course_module.id', ondelete='CASCADE'), nullable=True)
    slug = Column(String(255), unique=True)
    content = Column(Text)
    content_type = Column(String(32), nullable=False, server_default=text("'html'"))
    position = Column(Integer, nullable=False, server_default=text("0"))

    module = relationship('CourseModule')


class Assignment(AuthorizableMixin, Base):
    __tablename__ = 'assignment'
    __content_kind__ = ContentKind.ASSIGNMENT
    __course_collection__ = 'assignments'

    description = Column(Text)
    due_date = Column(DateTime(True))
    points = Column(Integer)
    submission_type = Column(String(64))


class Quiz(AuthorizableMixin, Base):
    __tablename__ = 'quiz'
    __content_kind__ = ContentKind.QUIZ
    __course_collection__ = 'quizzes'

    description = Column(Text)
    open_date = Column(DateTime(True))
    close_date = Column(DateTime(True))
    time_limit = Column(Integer)


class Discussion(AuthorizableMixin, Base):
    __tablename__ = 'discussion'
    __content_kind__ = ContentKind.DISCUSSION
    __course_collection__ = 'discussions'

    content = Column(Text)
    is_pinned = Column(Boolean, nullable=False, server_default=text("false"))
    is_locked = Column(Boolean, nullable=False, server_default=text("false"))


class Announcement(AuthorizableMixin, Base):
    __tablename__ = 'announcement'
    __content_kind__ = ContentKind.ANNOUNCEMENT
    __course_collection__ = 'announcements'

    content = Column(Text)
    is_global = Column(Boolean, nullable=False, server_default=text("false"))


CONTENT_MODELS = [Page, Assignment, Quiz, Discussion, Announcement, CourseModule]
