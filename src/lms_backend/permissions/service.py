"""
Access decision service.

The authorization facade used by routers, the request gate and the CLI.
It combines explicit ACL entries with the implicit course-based fallback
that applies to content items without any entries.
"""

import logging
from enum import Enum
from typing import Any, Iterable, List, Optional
from sqlalchemy.orm import Session

from lms_backend.interface.permissions import GranteeType, PermissionType
from lms_backend.model.course import Course
from lms_backend.permissions.cache import AclEntryCache, get_acl_entry_cache
from lms_backend.permissions.content import ContentAcl
from lms_backend.permissions.lookups import (
    ContentLoader,
    CourseLookup,
    DatabaseCourseLookup,
    DatabaseRoleLookup,
    RoleLookup,
)
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.registry import BuiltinRole, ensure_content_kind, ensure_permission
from lms_backend.permissions.store import AclEntryStore
from lms_backend.settings import settings

# Populates the content registry
import lms_backend.permissions.core  # noqa: F401

logger = logging.getLogger(__name__)


class TeachingAssistantAccess(str, Enum):
    """Course-fallback policy for the teaching_assistant role"""

    ALL = "all"    # any content without explicit entries, in any course
    NONE = "none"  # no fallback access beyond what other rules give


class AclService:

    def __init__(self, db: Session,
                 roles: Optional[RoleLookup] = None,
                 courses: Optional[CourseLookup] = None,
                 cache: Optional[AclEntryCache] = None,
                 teaching_assistant_access: Optional[Any] = None):
        self.db = db
        self.store = AclEntryStore(db, cache if cache is not None else get_acl_entry_cache())
        self.roles = roles or DatabaseRoleLookup(db)
        self.courses = courses or DatabaseCourseLookup(db)
        self.loader = ContentLoader(db)
        self.teaching_assistant_access = TeachingAssistantAccess(
            teaching_assistant_access or settings.ACL_TEACHING_ASSISTANT_ACCESS
        )

    def acl_for(self, content: Any) -> ContentAcl:
        return ContentAcl(content, self.store, self.roles, self.courses)

    def load_content(self, kind: Any, content_id: Any) -> Optional[Any]:
        return self.loader.load(kind, content_id)

    def has_permission(self, principal: Principal, content: Any, permission: Any) -> bool:
        return self.acl_for(content).has_permission(principal, permission)

    def can_access(self, principal: Principal, content: Any, permission: Any = PermissionType.VIEW) -> bool:
        """
        Decide whether the principal may perform `permission` on the content.

        Explicit entries, when a content item has any, are authoritative.
        Without entries the course relationships decide: the instructor may
        do anything, teaching assistants follow the configured policy and
        enrolled students may view.
        """
        permission = ensure_permission(permission)

        if principal.is_admin:
            return True

        acl = self.acl_for(content)
        if self.store.has_entries(acl.ref):
            return acl.has_permission(principal, permission)

        course = self.courses.get_course(content)
        if course is None:
            logger.debug(f"No ACL entries and no course for {acl.ref}, denying {permission.value}")
            return False

        if principal.user_id is not None and self.courses.instructor_id(course) == principal.user_id:
            return True

        if principal.has_role(BuiltinRole.TEACHING_ASSISTANT):
            # TODO: restrict to courses the assistant is assigned to once course assistant assignments exist
            if self.teaching_assistant_access == TeachingAssistantAccess.ALL:
                return True

        if permission == PermissionType.VIEW and self.courses.is_enrolled(principal.user_id, course):
            return True

        return False

    def get_user_permissions(self, principal: Principal, content: Any) -> List[PermissionType]:
        return self.acl_for(content).get_user_permissions(principal)

    def grant_permission(self, content: Any, permission: Any, grantee_type: Any, grantee_id: int) -> bool:
        return self.acl_for(content).grant_permission(permission, grantee_type, grantee_id)

    def revoke_permission(self, content: Any, permission: Any, grantee_type: Any, grantee_id: int) -> bool:
        return self.acl_for(content).revoke_permission(permission, grantee_type, grantee_id)

    def setup_default_permissions(self, content: Any):
        self.acl_for(content).set_default_permissions()

    def make_content_public(self, content: Any):
        self.acl_for(content).make_public()

    def make_content_private(self, content: Any) -> int:
        return self.acl_for(content).make_private()

    def get_accessible_content(self, principal: Principal, kind: Any, permission: Any = PermissionType.VIEW) -> List[Any]:
        """Items of a kind the principal holds `permission` on through explicit entries only"""
        kind = ensure_content_kind(kind)
        model = self.loader.model_for(kind)

        if principal.is_admin:
            return self.loader.query(kind).order_by(model.id).all()

        ids = self.store.content_ids_query(kind, permission, principal=principal)
        return self.loader.query(kind).filter(model.id.in_(ids)).order_by(model.id).all()

    def get_user_created_content(self, principal: Principal, kind: Any) -> List[Any]:
        """Items of a kind where the user holds a direct manage grant"""
        kind = ensure_content_kind(kind)
        model = self.loader.model_for(kind)

        ids = self.store.content_ids_query(
            kind, PermissionType.MANAGE,
            grantee_type=GranteeType.USER, grantee_id=principal.get_user_id_or_throw(),
        )
        return self.loader.query(kind).filter(model.id.in_(ids)).order_by(model.id).all()

    def bulk_grant_permissions(self, content_ids: Iterable[int], kind: Any, permission: Any,
                               grantee_type: Any, grantee_id: int) -> int:
        return self.store.bulk_grant(kind, content_ids, permission, grantee_type, grantee_id)

    def bulk_revoke_permissions(self, content_ids: Iterable[int], kind: Any, permission: Any,
                                grantee_type: Any, grantee_id: int) -> int:
        return self.store.bulk_revoke(kind, content_ids, permission, grantee_type, grantee_id)

    def backfill_default_permissions(self, kind: Any) -> int:
        """Apply default permissions to every item of a kind that has no entries yet"""
        kind = ensure_content_kind(kind)
        model = self.loader.model_for(kind)

        count = 0
        for content in self.loader.query(kind).order_by(model.id).all():
            acl = self.acl_for(content)
            if self.store.has_entries(acl.ref):
                continue
            acl.set_default_permissions()
            count += 1

        logger.info(f"Backfilled default permissions on {count} {kind.value} items")
        return count

    def delete_content(self, content: Any):
        """Delete a content item; its ACL entries are removed with it"""
        self.db.delete(content)
        self.db.commit()

    def delete_course(self, course: Course):
        """Delete a course with all of its content items and their ACL entries"""
        course_id = course.id
        self.db.delete(course)
        self.db.commit()
        logger.info(f"Deleted course {course_id} with its content")

    def purge_orphaned_entries(self) -> int:
        """Remove entries of content deleted by query-level deletes, returns the number of items cleaned"""
        return self.store.purge_orphans()
