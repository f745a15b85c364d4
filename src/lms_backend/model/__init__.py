from .base import Base, metadata
from .auth import User
from .role import Role, UserRole
from .course import Course, CourseEnrollment
from .content import (
    AuthorizableMixin,
    CourseModule,
    Page,
    Assignment,
    Quiz,
    Discussion,
    Announcement,
    CONTENT_MODELS,
)
from .acl import AclEntry

# Import all models to ensure relationships are properly set up
from . import auth, role, course, content, acl

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    # Role models
    'Role',
    'UserRole',
    # Course models
    'Course',
    'CourseEnrollment',
    # Content models
    'AuthorizableMixin',
    'CourseModule',
    'Page',
    'Assignment',
    'Quiz',
    'Discussion',
    'Announcement',
    'CONTENT_MODELS',
    # ACL
    'AclEntry',
]
