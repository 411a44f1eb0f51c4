from __future__ import annotations

import pytest

from taskboard.domain.enums import UserRole
from taskboard.domain.errors import ApiError, AuthenticationError, NetworkError
from taskboard.infra.user_gateway import LoginResult
from taskboard.services.auth_service import AuthService


class MemoryStore:
    def __init__(self) -> None:
        self.token = None
        self.user = None

    def set_token(self, token):
        self.token = token

    def current_user(self):
        return self.user

    def save_current_user(self, user):
        self.user = user

    def clear(self):
        self.token = None
        self.user = None


class FakeUserGateway:
    def __init__(self, user) -> None:
        self.user = user
        self.calls: list[tuple] = []
        self.current_error: Exception | None = None

    def login(self, email, password):
        self.calls.append(("login", email, password))
        if password != "secret":
            raise ApiError("Invalid credentials", status=400)
        return LoginResult(token="jwt", user=self.user, message="Login successful!")

    def current_user(self):
        if self.current_error is not None:
            raise self.current_error
        return self.user

    def register(self, name, email, password, role):
        self.calls.append(("register", name, email, role))
        return "Registration successful"

    def forget_password(self, email):
        self.calls.append(("forget", email))
        return "OTP sent to your email"

    def verify_otp(self, email, otp):
        self.calls.append(("otp", email, otp))
        return "OTP verified"

    def change_password(self, email, new_password):
        self.calls.append(("change", email, new_password))
        return "Password changed successfully"


@pytest.fixture()
def parts(alice, notifier):
    gateway = FakeUserGateway(alice)
    store = MemoryStore()
    return AuthService(gateway, store, notifier), gateway, store


def test_login_trims_and_persists(parts, alice, notifier) -> None:
    auth, gateway, store = parts

    user = auth.login("  alice@example.com ", " secret ")

    assert user == alice
    assert gateway.calls[0] == ("login", "alice@example.com", "secret")
    assert store.token == "jwt"
    assert store.user == alice
    assert auth.is_authenticated
    assert notifier.last.message == "Login successful!"


def test_failed_login_keeps_session_empty(parts, notifier) -> None:
    auth, _, store = parts

    assert auth.login("alice@example.com", "wrong") is None
    assert store.token is None
    assert notifier.last.message == "Invalid credentials"


def test_logout_clears_session(parts) -> None:
    auth, _, store = parts
    auth.login("alice@example.com", "secret")

    auth.handle_unauthorized()

    assert store.token is None
    assert auth.current_user is None
    assert not auth.is_authenticated


def test_restore_session_requeries_profile(parts, alice) -> None:
    auth, _, store = parts
    assert auth.restore_session() is None

    store.token = "jwt"
    assert auth.restore_session() == alice
    assert store.user == alice


def test_restore_session_logs_out_on_rejected_token(parts) -> None:
    auth, gateway, store = parts
    store.token = "expired"
    gateway.current_error = AuthenticationError("jwt expired", status=401)

    assert auth.restore_session() is None
    assert store.token is None


def test_restore_session_offline_keeps_cached_profile(parts, bob) -> None:
    auth, gateway, store = parts
    store.token = "jwt"
    auth.current_user = bob
    gateway.current_error = NetworkError("offline")

    assert auth.restore_session() == bob
    assert store.token == "jwt"


def test_register_normalises_email(parts) -> None:
    auth, gateway, _ = parts

    assert auth.register(" Carol ", "  Carol@Example.COM ", "secret1", UserRole.MANAGER)
    assert gateway.calls[-1] == ("register", "Carol", "carol@example.com", UserRole.MANAGER)


def test_forgot_password_checks_email_format(parts, notifier) -> None:
    auth, gateway, _ = parts

    assert auth.forgot_password("not-an-email") is False
    assert notifier.last.message == "Please enter a valid email address"
    assert auth.forgot_password("alice@example.com") is True
    assert gateway.calls[-1] == ("forget", "alice@example.com")


@pytest.mark.parametrize(
    ("new", "confirm", "message"),
    [
        ("", "", "All fields are required"),
        ("abc", "abc", "Password must be at least 6 characters long"),
        ("secret1", "secret2", "Passwords do not match"),
    ],
)
def test_change_password_rules(parts, notifier, new, confirm, message) -> None:
    auth, gateway, _ = parts

    assert auth.change_password("alice@example.com", new, confirm) is False
    assert notifier.last.message == message
    assert gateway.calls == []


def test_change_password_and_otp(parts) -> None:
    auth, gateway, _ = parts

    assert auth.verify_otp("alice@example.com", " 1234 ")
    assert auth.change_password("alice@example.com", "secret1", "secret1")
    assert gateway.calls == [("otp", "alice@example.com", "1234"), ("change", "alice@example.com", "secret1")]
