"""Shared-secret API key authentication."""

import logging
import secrets
from enum import Enum
from typing import Mapping

from repo_analyzer.core.config import Settings
from repo_analyzer.core.exceptions import AuthError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


class AuthDecision(str, Enum):
    """Outcome of an authentication check."""

    ALLOW = "allow"
    DENY = "deny"


def _header_value(headers: Mapping[str, str], name: str) -> str | None:
    """Look up a header case-insensitively."""
    value = headers.get(name)
    if value is not None:
        return value
    for header, header_value in headers.items():
        if header.lower() == name:
            return header_value
    return None


def authenticate(
    headers: Mapping[str, str], expected_key: str | None, development: bool
) -> AuthDecision:
    """Decide whether a request may call a mutating endpoint.

    Args:
        headers: Request headers
        expected_key: Configured shared secret
        development: Whether the service runs in development mode

    Returns:
        ALLOW in development mode, or when the x-api-key header equals the
        configured key exactly. DENY otherwise, including when no key is
        configured.
    """
    if development:
        return AuthDecision.ALLOW

    if not expected_key:
        return AuthDecision.DENY

    provided = _header_value(headers, API_KEY_HEADER)
    if provided is None:
        return AuthDecision.DENY

    if secrets.compare_digest(provided.encode("utf-8"), expected_key.encode("utf-8")):
        return AuthDecision.ALLOW
    return AuthDecision.DENY


class Authenticator:
    """Gate for mutating requests, bound to one key and mode."""

    def __init__(self, expected_key: str | None, development: bool = False):
        self._expected_key = expected_key
        self._development = development
        if development:
            logger.warning("Development mode: API key authentication is disabled")
        elif not expected_key:
            logger.warning("API_KEY is not configured; mutating requests will be rejected")

    @classmethod
    def from_settings(cls, settings: Settings) -> "Authenticator":
        return cls(settings.API_KEY, development=settings.is_development)

    def check(self, headers: Mapping[str, str]) -> AuthDecision:
        return authenticate(headers, self._expected_key, self._development)

    def require(self, headers: Mapping[str, str]) -> None:
        """Raise AuthError unless the request is allowed."""
        if self.check(headers) is AuthDecision.DENY:
            raise AuthError("Unauthorized")
