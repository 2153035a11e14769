"""
Authentication tests: login/logout state, registration and credential checks.
"""

import pytest

from meditrack.config import get_settings
from meditrack.db.store import EntityKind
from meditrack.exceptions import DuplicateKeyError, InvalidCredentialsError, UnauthorizedError
from meditrack.models.user import UserRole


class TestAuthenticate:
    def test_seeded_admin_logs_in(self, auth, activity, sessions):
        """Should accept admin/admin123 and write exactly one Login entry"""
        principal, user = auth.authenticate("admin", "admin123")
        assert user.username == "admin"
        assert user.role == UserRole.ADMIN
        assert user.last_login is not None
        assert sessions.is_authenticated(principal)

        logs = activity.list_all(principal)
        assert [log.action for log in logs] == ["Login"]
        assert logs[0].user_id == user.id

    def test_username_is_case_insensitive(self, auth):
        _, user = auth.authenticate("ADMIN", "admin123")
        assert user.username == "admin"

    def test_public_projection_hides_hash(self, auth):
        _, user = auth.authenticate("admin", "admin123")
        assert "hashed_password" not in user.model_dump()

    def test_wrong_password(self, auth, store):
        """Should reject a bad password without touching last_login"""
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("admin", "wrong")
        assert store.get(EntityKind.USER, 1).last_login is None

    def test_unknown_user(self, auth):
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("ghost", "admin123")

    def test_failed_login_not_logged_by_default(self, auth, store):
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("admin", "wrong")
        assert store.count(EntityKind.ACTIVITY_LOG) == 0

    def test_failed_login_logged_when_enabled(self, auth, store, monkeypatch):
        monkeypatch.setattr(get_settings(), "LOG_FAILED_LOGINS", True)
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("admin", "wrong", ip_address="10.1.1.1")
        (log,) = store.get_all(EntityKind.ACTIVITY_LOG)
        assert log.action == "Login Failed"
        assert log.user_id == 1
        assert log.ip_address == "10.1.1.1"

    def test_each_login_is_its_own_session(self, auth, sessions):
        first, _ = auth.authenticate("admin", "admin123")
        second, _ = auth.authenticate("admin", "admin123")
        assert first.session_id != second.session_id
        assert sessions.active_count() == 2


class TestLogout:
    def test_logout_ends_session(self, auth, activity, sessions, admin):
        """Should log the logout and refuse the principal afterwards"""
        assert auth.logout(admin) is True
        assert not sessions.is_authenticated(admin)
        with pytest.raises(UnauthorizedError):
            sessions.authorize(admin)

        logs = activity.store.get_all(EntityKind.ACTIVITY_LOG)
        assert [log.action for log in logs] == ["Login", "Logout"]

    def test_logout_twice_is_noop(self, auth, store, admin):
        auth.logout(admin)
        assert auth.logout(admin) is False
        assert store.count(EntityKind.ACTIVITY_LOG) == 2

    def test_anonymous_logout(self, auth, store):
        assert auth.logout(None) is False
        assert store.count(EntityKind.ACTIVITY_LOG) == 0


class TestRegister:
    def test_register_staff(self, auth, sessions):
        """Should create a staff account without opening a session"""
        user = auth.register("nurse.joy", "secret12", "Joy Santos")
        assert user.role == UserRole.STAFF
        assert user.full_name == "Joy Santos"
        assert sessions.active_count() == 0

        principal, _ = auth.authenticate("nurse.joy", "secret12")
        assert principal.user_id == user.id

    def test_duplicate_username_any_case(self, auth):
        with pytest.raises(DuplicateKeyError):
            auth.register("Admin", "whatever1", "Impostor")

    def test_duplicate_username_non_ascii_case(self, auth):
        auth.register("Émile", "secret12", "Émile Santos")
        with pytest.raises(DuplicateKeyError):
            auth.register("émile", "secret12", "Impostor")
        with pytest.raises(DuplicateKeyError):
            auth.register("ÉMILE", "secret12", "Impostor")

    def test_non_ascii_username_logs_in(self, auth):
        """Should accept the registered spelling and any case variant of it"""
        user = auth.register("Émile", "secret12", "Émile Santos")
        for spelling in ("Émile", "émile", "ÉMILE"):
            principal, found = auth.authenticate(spelling, "secret12")
            assert principal.user_id == user.id
            assert found.username == "Émile"

    def test_password_is_hashed(self, auth, store):
        user = auth.register("clerk", "secret12", "Clerk")
        stored = store.get(EntityKind.USER, user.id)
        assert stored.hashed_password != "secret12"
        assert stored.hashed_password.startswith("$2b$")


class TestCurrentUser:
    def test_current_user(self, auth, admin):
        assert auth.current_user(admin).username == "admin"

    def test_current_user_after_logout(self, auth, admin):
        auth.logout(admin)
        with pytest.raises(UnauthorizedError):
            auth.current_user(admin)
