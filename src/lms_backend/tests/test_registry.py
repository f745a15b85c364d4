"""
Registry and principal tests

Validation of the closed enumerations, route-name kind inference and the
kind -> model dispatch table.
"""

import pytest

from lms_backend.interface.permissions import ContentKind, ContentRef, GranteeType, PermissionType
from lms_backend.model import Assignment, CourseModule, Page, Quiz
from lms_backend.permissions.exceptions import (
    InvalidContentKind,
    InvalidGranteeKind,
    InvalidPermissionKind,
    Unauthenticated,
)
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.registry import (
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


class TestValidation:
    @pytest.mark.parametrize("value", ["view", "edit", "delete", "manage", PermissionType.MANAGE])
    def test_valid_permissions(self, value):
        assert is_valid_permission(value) is True

    @pytest.mark.parametrize("value", ["admin", "VIEW", "", None, 3])
    def test_invalid_permissions(self, value):
        assert is_valid_permission(value) is False

    def test_grantee_types(self):
        assert is_valid_grantee_type("role")
        assert is_valid_grantee_type("user")
        assert not is_valid_grantee_type("group")

    def test_content_kinds(self):
        assert is_valid_content_kind("module")
        assert not is_valid_content_kind("course")

    def test_ensure_returns_members(self):
        assert ensure_permission("edit") is PermissionType.EDIT
        assert ensure_grantee_type("role") is GranteeType.ROLE
        assert ensure_content_kind("quiz") is ContentKind.QUIZ

    def test_ensure_rejects_unknown_values(self):
        with pytest.raises(InvalidPermissionKind):
            ensure_permission("own")
        with pytest.raises(InvalidGranteeKind):
            ensure_grantee_type("group")
        with pytest.raises(InvalidContentKind):
            ensure_content_kind("course")

    def test_invalid_kinds_are_value_errors(self):
        with pytest.raises(ValueError):
            ensure_permission("own")


class TestRouteInference:
    @pytest.mark.parametrize("route_name,kind", [
        ("pages.show", ContentKind.PAGE),
        ("api.assignments.update", ContentKind.ASSIGNMENT),
        ("quizzes.destroy", ContentKind.QUIZ),
        ("discussions.show", ContentKind.DISCUSSION),
        ("announcements.index", ContentKind.ANNOUNCEMENT),
        ("courses.modules.show", ContentKind.MODULE),
    ])
    def test_keyword_match(self, route_name, kind):
        assert infer_kind_from_route_name(route_name) is kind

    def test_first_keyword_wins(self):
        assert infer_kind_from_route_name("modules.pages.show") is ContentKind.PAGE

    @pytest.mark.parametrize("route_name", [None, "", "users.show", "page.show"])
    def test_unresolvable(self, route_name):
        assert infer_kind_from_route_name(route_name) is None


class TestContentRegistry:
    def test_singleton(self):
        assert ContentRegistry() is content_registry

    def test_models_registered(self):
        assert content_registry.get_model("page") is Page
        assert content_registry.get_model(ContentKind.ASSIGNMENT) is Assignment
        assert content_registry.get_model("quiz") is Quiz
        assert content_registry.get_model("module") is CourseModule
        assert set(content_registry.models()) == set(ContentKind)

    def test_unknown_kind_fails_fast(self):
        with pytest.raises(InvalidContentKind):
            content_registry.get_model("course")

    def test_kind_for_instance_and_class(self):
        assert content_registry.kind_for(Page) is ContentKind.PAGE
        assert content_registry.kind_for(Quiz(title="q")) is ContentKind.QUIZ

    def test_content_ref(self):
        page = Page(id=7, title="Intro")
        assert page.content_ref == ContentRef(kind=ContentKind.PAGE, id=7)
        assert str(page.content_ref) == "page:7"

    def test_content_ref_requires_id(self):
        with pytest.raises(ValueError):
            Page(title="unsaved").content_ref

    def test_content_refs_are_hashable(self):
        refs = {ContentRef(kind="page", id=1), ContentRef(kind=ContentKind.PAGE, id=1)}
        assert len(refs) == 1


class TestPrincipal:
    def test_admin_role_sets_flag(self):
        assert Principal(user_id=1, roles=["admin"]).is_admin is True
        assert Principal(user_id=1, roles=["instructor"]).is_admin is False

    def test_roles(self):
        principal = Principal(user_id=1, roles=["student", "teaching_assistant"])
        assert principal.has_role("student")
        assert principal.has_any_role(["instructor", "teaching_assistant"])
        assert not principal.has_any_role(["instructor", "admin"])

    def test_user_id_or_throw(self):
        assert Principal(user_id=5).get_user_id_or_throw() == 5
        with pytest.raises(Unauthenticated):
            Principal().get_user_id_or_throw()
