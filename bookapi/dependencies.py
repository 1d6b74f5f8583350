"""
FastAPI Dependencies Module

Reusable pieces injected into route handlers:
- DbSession: per-request SQLAlchemy session
- Paging: page/size/sort query parameters as a PageRequest
- CurrentPrincipal: caller decoded from the bearer token (401 if absent)
- require_reader / require_editor / require_admin: route-level role gates

Route gates mirror the role rules the service enforces, so a request
without the right role is refused before any work is done.
"""

import logging
from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from bookapi.database import get_db
from bookapi.exceptions import AccessDeniedError, AuthenticationError
from bookapi.schemas.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest
from bookapi.services.security import Principal, Role, principal_from_token

logger = logging.getLogger(__name__)

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
def get_page_request(
    page: int = Query(
        default=0,
        ge=0,
        description="Page number (0-based)",
        examples=[0, 1],
    ),
    size: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description=f"Items per page (max {MAX_PAGE_SIZE})",
        examples=[20, 50],
    ),
    sort: str = Query(
        default="title,asc",
        max_length=50,
        description="Sort as field[,asc|desc], e.g. price,desc",
        examples=["title,asc", "stockQuantity,desc"],
    ),
) -> PageRequest:
    """
    Query-string paging for list endpoints.

        GET /api/v1/books?page=1&size=10&sort=price,desc
    """
    return PageRequest.parse(page=page, size=size, sort=sort)


Paging = Annotated[PageRequest, Depends(get_page_request)]


# =============================================================================
# Authentication
# =============================================================================
bearer_scheme = HTTPBearer(auto_error=False, description="JWT access token")


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal:
    """
    Decode the bearer token into a Principal.

    Raises:
        AuthenticationError: no Authorization header, or the token is invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return principal_from_token(credentials.credentials)


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


class RoleChecker:
    """Dependency that admits callers holding any of `allowed_roles`."""

    def __init__(self, *allowed_roles: Role):
        self.allowed_roles = frozenset(allowed_roles)

    def __call__(self, request: Request, principal: CurrentPrincipal) -> Principal:
        if not principal.has_any_role(self.allowed_roles):
            logger.warning(
                "Insufficient privileges for caller.",
                extra={
                    "subject": principal.subject,
                    "roles": sorted(role.value for role in principal.roles),
                    "required_roles": sorted(role.value for role in self.allowed_roles),
                    "path": request.url.path,
                },
            )
            raise AccessDeniedError()
        return principal


require_reader = RoleChecker(Role.USER, Role.LIBRARIAN, Role.ADMIN)
require_editor = RoleChecker(Role.LIBRARIAN, Role.ADMIN)
require_admin = RoleChecker(Role.ADMIN)

Reader = Annotated[Principal, Depends(require_reader)]
Editor = Annotated[Principal, Depends(require_editor)]
Admin = Annotated[Principal, Depends(require_admin)]
