from lms_backend.permissions.auth import PrincipalBuilder
from lms_backend.settings import BackendSettings


class TestPrincipalBuilder:
    def test_roles_loaded(self, session, roles, factory):
        user = factory.user("instructor", "teaching_assistant")

        principal = PrincipalBuilder.build(user.id, session)

        assert principal.user_id == user.id
        assert sorted(principal.roles) == ["instructor", "teaching_assistant"]
        assert sorted(principal.role_ids) == sorted([roles["instructor"], roles["teaching_assistant"]])
        assert principal.is_admin is False

    def test_admin(self, session, roles, factory):
        assert PrincipalBuilder.build(factory.user("admin").id, session).is_admin is True

    def test_user_without_roles(self, session, factory):
        principal = PrincipalBuilder.build(factory.user().id, session)
        assert principal.roles == []
        assert principal.role_ids == []

    def test_unknown_user(self, session):
        assert PrincipalBuilder.build(12345, session) is None


class TestSettings:
    def test_singleton(self):
        assert BackendSettings() is BackendSettings()

    def test_reload_from_environment(self, monkeypatch):
        settings = BackendSettings()
        monkeypatch.setenv("ACL_CACHE_ENABLED", "yes")
        monkeypatch.setenv("ACL_CACHE_TTL", "30")
        monkeypatch.setenv("ACL_TEACHING_ASSISTANT_ACCESS", "NONE")
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        try:
            settings.reload()
            assert settings.ACL_CACHE_ENABLED is True
            assert settings.ACL_CACHE_TTL == 30
            assert settings.ACL_TEACHING_ASSISTANT_ACCESS == "none"
            assert settings.database_url == "sqlite://"
        finally:
            monkeypatch.undo()
            settings.reload()

    def test_postgres_fallback(self, monkeypatch):
        settings = BackendSettings()
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("POSTGRES_USER", "lms")
        monkeypatch.setenv("POSTGRES_PASSWORD", "secret")
        monkeypatch.setenv("POSTGRES_URL", "db:5432")
        monkeypatch.setenv("POSTGRES_DB", "lms")
        try:
            settings.reload()
            assert settings.database_url == "postgresql://lms:secret@db:5432/lms"
        finally:
            monkeypatch.undo()
            settings.reload()
