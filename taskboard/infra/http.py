from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import requests

from taskboard.domain.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]

_DEFAULT_MESSAGES = {
    400: "Invalid request",
    401: "Session expired. Please login again.",
    403: "You do not have permission to perform this action",
    404: "Resource not found",
    422: "Invalid request",
}


def message_of(body: dict[str, Any], default: str = "") -> str:
    for key in ("message", "msg", "error_description"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    error = body.get("error")
    if isinstance(error, dict):
        return message_of(error, default)
    if isinstance(error, str) and error.strip():
        return error
    return default


def _field_errors(body: dict[str, Any]) -> dict[str, str]:
    raw = body.get("errors")
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if isinstance(raw, list):
        errors: dict[str, str] = {}
        for item in raw:
            if not isinstance(item, dict):
                continue
            field = item.get("path") or item.get("field") or item.get("param")
            text = item.get("msg") or item.get("message")
            if field and text:
                errors[str(field)] = str(text)
        return errors
    return {}


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token_provider: TokenProvider = lambda: None,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._token_provider = token_provider
        self._timeout = timeout
        self._session = session or requests.Session()
        self._unauthorized_hooks: list[Callable[[], None]] = []

    @property
    def base_url(self) -> str:
        return self._base_url

    def add_unauthorized_hook(self, hook: Callable[[], None]) -> None:
        self._unauthorized_hooks.append(hook)

    def url(self, path: str) -> str:
        return self._base_url + path.lstrip("/")

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> dict[str, Any]:
        url = self.url(path)
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if authenticated:
            token = self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
            else:
                logger.warning("Bearer token is missing for %s %s", method, path)

        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                json=json,
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(str(exc) or "Network error") from exc

        body = self._decode(response)
        if response.status_code >= 400:
            raise self._error_for(response.status_code, body, authenticated)
        if body.get("success") is False or body.get("error") is True:
            raise ApiError(
                message_of(body, "Request failed"),
                status=response.status_code,
                payload=body,
            )
        return body

    def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("DELETE", path, **kwargs)

    @staticmethod
    def _decode(response: requests.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        if isinstance(body, dict):
            return body
        return {"data": body}

    def _error_for(self, status: int, body: dict[str, Any], authenticated: bool) -> ApiError:
        message = message_of(body, _DEFAULT_MESSAGES.get(status, f"Request failed ({status})"))
        logger.warning("Backend answered %s: %s", status, message)
        if status == 401:
            if authenticated:
                for hook in self._unauthorized_hooks:
                    hook()
            return AuthenticationError(message, status=status, payload=body)
        if status == 403:
            return PermissionDeniedError(message, status=status, payload=body)
        if status == 404:
            return NotFoundError(message, status=status, payload=body)
        if status in (400, 422):
            return ValidationError(
                message,
                status=status,
                payload=body,
                field_errors=_field_errors(body),
            )
        return ApiError(message, status=status, payload=body)
