"""
Content ACL engine for the LMS backend

Decides who may view, edit, delete or manage individual content items
(pages, assignments, quizzes, discussions, announcements, modules).

Main components:
- registry: Permission, grantee and content-kind validation plus the kind -> model table
- principal: Authenticated actor with its roles
- store: Repository over the acl_entries table
- cache: Optional in-process snapshot cache of ACL entries
- content: Per-content capability wrapping one item
- lookups: Role and course lookups the engine depends on
- service: Access decision facade with course-based fallback
- course_policy: Coarse course-level checks
- auth: Principal resolution for requests
- gate: FastAPI dependency guarding content routes
"""

from .principal import Principal

from .registry import (
    BuiltinRole,
    ContentRegistry,
    content_registry,
    ensure_content_kind,
    ensure_grantee_type,
    ensure_permission,
    infer_kind_from_route_name,
    is_valid_content_kind,
    is_valid_grantee_type,
    is_valid_permission,
)

from .core import initialize_content_registry

from .store import AclEntryStore

from .cache import (
    AclEntryCache,
    get_acl_entry_cache,
)

from .content import ContentAcl

from .service import (
    AclService,
    TeachingAssistantAccess,
)

from .course_policy import CoursePolicy

from .auth import (
    PrincipalBuilder,
    get_current_principal,
    get_optional_principal,
    require_role,
)

from .gate import (
    authorize_content_request,
    require_acl,
)

__all__ = [
    # Principal
    "Principal",

    # Registry
    "BuiltinRole",
    "ContentRegistry",
    "content_registry",
    "ensure_content_kind",
    "ensure_grantee_type",
    "ensure_permission",
    "infer_kind_from_route_name",
    "is_valid_content_kind",
    "is_valid_grantee_type",
    "is_valid_permission",

    # Core
    "initialize_content_registry",

    # Storage and caching
    "AclEntryStore",
    "AclEntryCache",
    "get_acl_entry_cache",

    # Decisions
    "ContentAcl",
    "AclService",
    "TeachingAssistantAccess",
    "CoursePolicy",

    # Authentication and request gate
    "PrincipalBuilder",
    "get_current_principal",
    "get_optional_principal",
    "require_role",
    "authorize_content_request",
    "require_acl",
]
