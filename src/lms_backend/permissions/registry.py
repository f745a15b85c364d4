"""
Permission registry for the content ACL engine.

Validation for the closed permission, grantee and content-kind enumerations,
plus the static dispatch table that maps a content kind to the model class
storing it.
"""

from typing import Any, Dict, List, Optional, Type

from lms_backend.interface.permissions import ContentKind, ContentRef, GranteeType, PermissionType
from lms_backend.permissions.exceptions import (
    InvalidPermissionKind,
    InvalidGranteeKind,
    InvalidContentKind,
)


class BuiltinRole:
    """Well-known role names. The role table itself is open to other names."""

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"
    TEACHING_ASSISTANT = "teaching_assistant"

    ALL = [ADMIN, INSTRUCTOR, STUDENT, TEACHING_ASSISTANT]


# Checked in order, first substring match against the route name wins
ROUTE_KEYWORDS: Dict[ContentKind, str] = {
    ContentKind.PAGE: "pages",
    ContentKind.ASSIGNMENT: "assignments",
    ContentKind.QUIZ: "quizzes",
    ContentKind.DISCUSSION: "discussions",
    ContentKind.ANNOUNCEMENT: "announcements",
    ContentKind.MODULE: "modules",
}

PERMISSION_ORDER: List[PermissionType] = [
    PermissionType.VIEW,
    PermissionType.EDIT,
    PermissionType.DELETE,
    PermissionType.MANAGE,
]


def _coerce(enum_cls, value: Any):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return None


def is_valid_permission(kind: Any) -> bool:
    return _coerce(PermissionType, kind) is not None


def is_valid_grantee_type(kind: Any) -> bool:
    return _coerce(GranteeType, kind) is not None


def is_valid_content_kind(kind: Any) -> bool:
    return _coerce(ContentKind, kind) is not None


def ensure_permission(kind: Any) -> PermissionType:
    permission = _coerce(PermissionType, kind)
    if permission is None:
        raise InvalidPermissionKind(kind)
    return permission


def ensure_grantee_type(kind: Any) -> GranteeType:
    grantee_type = _coerce(GranteeType, kind)
    if grantee_type is None:
        raise InvalidGranteeKind(kind)
    return grantee_type


def ensure_content_kind(kind: Any) -> ContentKind:
    content_kind = _coerce(ContentKind, kind)
    if content_kind is None:
        raise InvalidContentKind(kind)
    return content_kind


def infer_kind_from_route_name(route_name: Optional[str]) -> Optional[ContentKind]:
    if not route_name:
        return None

    for kind, keyword in ROUTE_KEYWORDS.items():
        if keyword in route_name:
            return kind
    return None


class ContentRegistry:
    """Registry mapping content kinds to their model classes"""

    _instance = None
    _models: Dict[ContentKind, Type[Any]] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def register(self, kind: ContentKind, model: Type[Any]):
        """Register the model class storing a content kind"""
        self._models[ensure_content_kind(kind)] = model

    def get_model(self, kind: Any) -> Type[Any]:
        """Get the model class for a content kind, failing fast on unknown kinds"""
        content_kind = ensure_content_kind(kind)
        model = self._models.get(content_kind)
        if model is None:
            raise InvalidContentKind(kind)
        return model

    def kind_for(self, model_or_instance: Any) -> ContentKind:
        model = model_or_instance if isinstance(model_or_instance, type) else type(model_or_instance)
        for kind, registered in self._models.items():
            if registered is model:
                return kind
        raise InvalidContentKind(getattr(model, "__name__", model))

    def models(self) -> Dict[ContentKind, Type[Any]]:
        return dict(self._models)


# Global registry instance
content_registry = ContentRegistry()
