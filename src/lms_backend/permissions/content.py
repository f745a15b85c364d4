"""
Per-content ACL capability.

`ContentAcl` wraps one content item and scopes the entry store to it. It is
composed around the entity rather than mixed into it, so every content model
only has to expose `content_ref`, `created_by`, `course_id` and `is_public`.
"""

import logging
from typing import Any, List, Optional

from lms_backend.interface.permissions import ContentRef, GranteeType, PermissionType
from lms_backend.permissions.lookups import CourseLookup, RoleLookup
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.registry import PERMISSION_ORDER, ensure_permission
from lms_backend.permissions.store import AclEntryStore
from lms_backend.settings import settings

logger = logging.getLogger(__name__)


class ContentAcl:

    def __init__(self, content: Any, store: AclEntryStore, roles: RoleLookup,
                 courses: Optional[CourseLookup] = None, student_role: Optional[str] = None):
        self.content = content
        self.store = store
        self.roles = roles
        self.courses = courses
        self.student_role = student_role or settings.ACL_STUDENT_ROLE

    @property
    def ref(self) -> ContentRef:
        return self.content.content_ref

    def grant_permission(self, permission: Any, grantee_type: Any, grantee_id: int) -> bool:
        return self.store.grant(self.ref, permission, grantee_type, grantee_id)

    def revoke_permission(self, permission: Any, grantee_type: Any, grantee_id: int) -> bool:
        return self.store.revoke(self.ref, permission, grantee_type, grantee_id)

    def has_permission(self, principal: Principal, permission: Any) -> bool:
        permission = ensure_permission(permission)

        # Admins have all permissions
        if principal.is_admin:
            return True

        return self.store.has_any(self.ref, permission, principal)

    def can_view(self, principal: Principal) -> bool:
        return self.has_permission(principal, PermissionType.VIEW)

    def can_edit(self, principal: Principal) -> bool:
        return self.has_permission(principal, PermissionType.EDIT)

    def can_delete(self, principal: Principal) -> bool:
        return self.has_permission(principal, PermissionType.DELETE)

    def can_manage(self, principal: Principal) -> bool:
        return self.has_permission(principal, PermissionType.MANAGE)

    def get_user_permissions(self, principal: Principal) -> List[PermissionType]:
        """Permissions the principal holds, in view/edit/delete/manage order"""
        if principal.is_admin:
            return list(PERMISSION_ORDER)

        held = self.store.permissions_for(self.ref, principal)
        return [permission for permission in PERMISSION_ORDER if permission in held]

    def _grant_student_view(self, reason: str):
        student_role_id = self.roles.get_role_id(self.student_role)
        if student_role_id is None:
            logger.warning(f"Role '{self.student_role}' not found, skipping {reason} view grant on {self.ref}")
            return
        self.grant_permission(PermissionType.VIEW, GranteeType.ROLE, student_role_id)

    def set_default_permissions(self):
        """
        Bootstrap the entries of a newly created content item.

        The creator and the course instructor get manage; the student role
        gets view when the item belongs to a course or is public.
        """
        created_by = getattr(self.content, "created_by", None)
        if created_by:
            self.grant_permission(PermissionType.MANAGE, GranteeType.USER, created_by)

        course = self.courses.get_course(self.content) if self.courses is not None else None

        instructor_id = self.courses.instructor_id(course) if course is not None else None
        if instructor_id:
            self.grant_permission(PermissionType.MANAGE, GranteeType.USER, instructor_id)

        if course is not None:
            self._grant_student_view("course")

        if getattr(self.content, "is_public", False):
            self._grant_student_view("public")

    def make_public(self):
        self._grant_student_view("public")

    def make_private(self) -> int:
        """Remove ALL entries of the item, manage and edit grants included"""
        return self.store.delete_all(self.ref)
