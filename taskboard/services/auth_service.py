from __future__ import annotations

import logging
import re
from typing import Optional

from taskboard.domain.entities import UserEntity
from taskboard.domain.enums import UserRole
from taskboard.domain.errors import AuthenticationError, TaskboardError
from taskboard.infra.session_store import SessionStore
from taskboard.infra.user_gateway import UserGateway

from .notifications import Notifier

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


class AuthService:
    def __init__(self, gateway: UserGateway, store: SessionStore, notifier: Notifier) -> None:
        self._gateway = gateway
        self._store = store
        self._notifier = notifier
        self.current_user: Optional[UserEntity] = store.current_user()

    @property
    def is_authenticated(self) -> bool:
        return bool(self._store.token)

    def login(self, email: str, password: str) -> Optional[UserEntity]:
        email, password = email.strip(), password.strip()
        if not email or not password:
            self._notifier.error("Email and password are required")
            return None
        try:
            result = self._gateway.login(email, password)
        except TaskboardError as exc:
            logger.warning("Login failed for %s: %s", email, exc)
            self._notifier.error(str(exc) or "Login failed. Please try again.")
            return None

        self._store.set_token(result.token)
        user = result.user or UserEntity(id="", name=email.split("@")[0], email=email)
        self._store.save_current_user(user)
        self.current_user = user
        logger.info("Logged in as %s (%s)", user.email, user.role)
        self._notifier.success(result.message)
        return user

    def logout(self) -> None:
        self._store.clear()
        self.current_user = None
        logger.info("Session cleared")

    def handle_unauthorized(self) -> None:
        logger.warning("Backend rejected the session token")
        self.logout()

    def restore_session(self) -> Optional[UserEntity]:
        """Re-query the profile for a stored token; a rejected token logs out."""
        if not self.is_authenticated:
            return None
        try:
            user = self._gateway.current_user()
        except AuthenticationError:
            self.logout()
            self._notifier.error("Session expired. Please login again.")
            return None
        except TaskboardError as exc:
            # Offline start: keep the cached profile until the backend answers.
            logger.warning("Could not refresh current user: %s", exc)
            return self.current_user

        self._store.save_current_user(user)
        self.current_user = user
        return user

    def register(self, name: str, email: str, password: str, role: UserRole = UserRole.USER) -> bool:
        name, email = name.strip(), email.strip().lower()
        if not name or not email or not password:
            self._notifier.error("All fields are required")
            return False
        if not EMAIL_PATTERN.match(email):
            self._notifier.error("Please enter a valid email address")
            return False
        try:
            message = self._gateway.register(name, email, password, role)
        except TaskboardError as exc:
            logger.warning("Registration failed for %s: %s", email, exc)
            self._notifier.error(str(exc) or "Registration failed")
            return False
        self._notifier.success(message)
        return True

    def forgot_password(self, email: str) -> bool:
        email = email.strip()
        if not email:
            self._notifier.error("Please enter your email address")
            return False
        if not EMAIL_PATTERN.match(email):
            self._notifier.error("Please enter a valid email address")
            return False
        try:
            message = self._gateway.forget_password(email)
        except TaskboardError as exc:
            self._notifier.error(str(exc) or "Failed to send OTP")
            return False
        self._notifier.success(message)
        return True

    def verify_otp(self, email: str, otp: str) -> bool:
        otp = otp.strip()
        if not otp:
            self._notifier.error("Please enter the OTP")
            return False
        try:
            message = self._gateway.verify_otp(email.strip(), otp)
        except TaskboardError as exc:
            self._notifier.error(str(exc) or "Invalid OTP")
            return False
        self._notifier.success(message)
        return True

    def change_password(self, email: str, new_password: str, confirm_password: str) -> bool:
        if not email.strip() or not new_password or not confirm_password:
            self._notifier.error("All fields are required")
            return False
        if len(new_password) < MIN_PASSWORD_LENGTH:
            self._notifier.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
            return False
        if new_password != confirm_password:
            self._notifier.error("Passwords do not match")
            return False
        try:
            message = self._gateway.change_password(email.strip(), new_password)
        except TaskboardError as exc:
            self._notifier.error(str(exc) or "Failed to change password")
            return False
        self._notifier.success(message)
        return True
