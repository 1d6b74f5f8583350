"""
Security Service

JWT bearer tokens and the caller identity derived from them.

Token format
============
HS256-signed with SECRET_KEY. Claims:
- sub: caller identifier
- roles: list of role names ("ADMIN", "LIBRARIAN", "USER"); a "ROLE_"
  prefix and any letter case are accepted
- exp / iat: expiry and issue time
- type: always "access"

Tokens are issued by an identity provider (or scripts/create_token.py for
local work); this service only verifies them. A token that decodes but
lacks a usable `sub` or `roles` claim is rejected rather than treated as
anonymous.
"""

import logging
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Iterable

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict

from bookapi.config import get_settings
from bookapi.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_TYPE = "access"
ROLE_PREFIX = "ROLE_"


class Role(str, Enum):
    USER = "USER"
    LIBRARIAN = "LIBRARIAN"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, name: str) -> "Role | None":
        """Map "ROLE_admin", "ADMIN", "admin" to Role.ADMIN; unknown names to None."""
        normalized = name.strip().upper()
        if normalized.startswith(ROLE_PREFIX):
            normalized = normalized[len(ROLE_PREFIX):]
        try:
            return cls(normalized)
        except ValueError:
            return None


class Principal(BaseModel):
    """The authenticated caller."""

    model_config = ConfigDict(frozen=True)

    subject: str
    roles: frozenset[Role]

    def has_any_role(self, roles: Iterable[Role]) -> bool:
        return not self.roles.isdisjoint(roles)


def create_access_token(
    subject: str,
    roles: Iterable[Role | str],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Example:
        >>> token = create_access_token("alice", [Role.LIBRARIAN])
        >>> token.count(".") == 2
        True
    """
    settings = get_settings()
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    claims = {
        "sub": subject,
        "roles": [role.value if isinstance(role, Role) else str(role) for role in roles],
        "iat": now,
        "exp": now + expires_delta,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """
    Decode and verify a JWT.

    Returns:
        The claims if the signature and expiry are valid, None otherwise
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def principal_from_token(token: str) -> Principal:
    """
    Verify a bearer token and build the caller's Principal.

    Raises:
        AuthenticationError: Bad signature, expired, wrong type, or a
            missing/malformed sub or roles claim
    """
    payload = decode_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != TOKEN_TYPE:
        logger.warning(f"Token type mismatch: expected {TOKEN_TYPE}")
        raise AuthenticationError("Invalid token type")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        logger.warning("Token rejected: missing subject claim")
        raise AuthenticationError("Token has no subject")

    raw_roles = payload.get("roles")
    if not isinstance(raw_roles, list) or not all(isinstance(r, str) for r in raw_roles):
        logger.warning(f"Token for {subject} rejected: missing or malformed roles claim")
        raise AuthenticationError("Token has no roles claim")

    roles = frozenset(role for role in (Role.parse(name) for name in raw_roles) if role is not None)
    return Principal(subject=subject, roles=roles)
