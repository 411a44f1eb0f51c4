from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from taskboard.domain.entities import UserEntity
from taskboard.domain.enums import UserRole
from taskboard.domain.errors import ApiError

from .http import ApiClient, message_of

logger = logging.getLogger(__name__)


def to_user_entity(data: dict[str, Any]) -> UserEntity:
    email = str(data.get("email") or data.get("userEmail") or "")
    name = (
        data.get("name")
        or data.get("username")
        or data.get("fullName")
        or data.get("userName")
        or (email.split("@")[0] if email else "")
        or "User"
    )
    skills = data.get("skills") or ()
    return UserEntity(
        id=str(data.get("id") or data.get("_id") or ""),
        name=str(name),
        email=email,
        role=UserRole.from_api(data.get("role") or data.get("userType")),
        department=data.get("department") or None,
        position=data.get("position") or None,
        phone=data.get("phone") or None,
        location=data.get("location") or None,
        bio=data.get("bio") or data.get("about") or None,
        skills=tuple(str(s) for s in skills) if isinstance(skills, (list, tuple)) else (),
        is_active=data.get("isActive") is not False,
    )


def user_to_dict(user: UserEntity) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "isActive": user.is_active,
    }
    for key, value in (
        ("department", user.department),
        ("position", user.position),
        ("phone", user.phone),
        ("location", user.location),
        ("bio", user.bio),
    ):
        if value:
            data[key] = value
    if user.skills:
        data["skills"] = list(user.skills)
    return data


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: UserEntity | None
    message: str


class UserGateway:
    """Wrapper around the auth and user endpoints (``auth/...``)."""

    def __init__(self, client: ApiClient, prefix: str = "auth/") -> None:
        self._client = client
        self._prefix = prefix

    def login(self, email: str, password: str) -> LoginResult:
        body = self._client.post(
            self._prefix + "login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        result = body.get("result") or {}
        token = result.get("token") if isinstance(result, dict) else None
        if not token:
            raise ApiError(message_of(body, "Invalid credentials"), payload=body)
        raw_user = result.get("user")
        user = to_user_entity(raw_user) if isinstance(raw_user, dict) else None
        if user is not None and not user.email:
            user = replace(user, email=email)
        return LoginResult(token=str(token), user=user, message=message_of(body, "Login successful!"))

    def register(self, name: str, email: str, password: str, role: UserRole) -> str:
        body = self._client.post(
            self._prefix + "register",
            json={"name": name, "email": email, "password": password, "role": role.value},
            authenticated=False,
        )
        return message_of(body, "Registration successful")

    def forget_password(self, email: str) -> str:
        body = self._client.post(
            self._prefix + "forgetPassword",
            json={"email": email},
            authenticated=False,
        )
        return message_of(body, "OTP sent to your email")

    def verify_otp(self, email: str, otp: str) -> str:
        body = self._client.post(
            self._prefix + "verifyOtp",
            json={"email": email, "OTP": otp},
            authenticated=False,
        )
        return message_of(body, "OTP verified")

    def change_password(self, email: str, new_password: str) -> str:
        body = self._client.post(
            self._prefix + "changePassword",
            json={"email": email, "newPassword": new_password},
            authenticated=False,
        )
        return message_of(body, "Password changed successfully")

    def current_user(self) -> UserEntity:
        body = self._client.get(self._prefix + "CurrentUser")
        result = body.get("result") or body.get("data")
        if not isinstance(result, dict):
            raise ApiError("No user data received", payload=body)
        return to_user_entity(result)

    def list_users(self) -> list[UserEntity]:
        body = self._client.get(self._prefix + "getAllUsers")
        rows = body.get("data") or body.get("result") or []
        return [to_user_entity(row) for row in rows if isinstance(row, dict)]

    def update_user(self, user_id: str, payload: dict[str, Any]) -> UserEntity | None:
        body = self._client.put(self._prefix + f"updateUser/{user_id}", json=payload)
        data = body.get("data") or body.get("result")
        return to_user_entity(data) if isinstance(data, dict) else None

    def delete_user(self, user_id: str) -> None:
        self._client.delete(self._prefix + f"deleteUser/{user_id}")
