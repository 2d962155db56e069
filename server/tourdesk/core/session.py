"""Explicit per-request session context built from the bearer token."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import jwt
from jwt import PyJWTError
import structlog

from .config import settings
from .exceptions import AuthenticationError

logger = structlog.get_logger(__name__)

TOKEN_ALGORITHM = "HS256"


@dataclass(frozen=True)
class SessionContext:
    """Identity of the signed-in caller, passed explicitly to services."""

    user_id: UUID
    email: Optional[str]
    role: str
    access_token: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def is_operator(self) -> bool:
        return self.role == settings.operator_role


def parse_authorization(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise AuthenticationError("Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError("Invalid authorization header format") from None

    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authentication scheme")
    return token


def _metadata_text(metadata: dict, key: str) -> Optional[str]:
    value = metadata.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def open_session(token: str) -> SessionContext:
    """
    Verify a bearer token and build the session context from its claims.

    Args:
        token: Encoded JWT carrying ``sub``, ``email`` and ``role`` claims, and
            optionally names under ``user_metadata``

    Returns:
        SessionContext: The caller's identity

    Raises:
        AuthenticationError: If the token is invalid, expired or incomplete
    """
    try:
        payload = jwt.decode(token, settings.bearer_token_secret, algorithms=[TOKEN_ALGORITHM])
    except PyJWTError as e:
        raise AuthenticationError(f"Token validation failed: {e}") from e

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Invalid token payload")

    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise AuthenticationError("Token subject is not an account id") from None

    metadata = payload.get("user_metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    context = SessionContext(
        user_id=user_id,
        email=payload.get("email"),
        role=payload.get("role") or settings.customer_role,
        access_token=token,
        full_name=_metadata_text(metadata, "full_name"),
        first_name=_metadata_text(metadata, "first_name"),
        last_name=_metadata_text(metadata, "last_name"),
    )

    structlog.contextvars.bind_contextvars(user_id=str(context.user_id), role=context.role)
    logger.debug("session opened")
    return context


def close_session(context: SessionContext) -> None:
    """Drop the caller's identity from the logging context."""
    logger.debug("session closed")
    structlog.contextvars.unbind_contextvars("user_id", "role")
