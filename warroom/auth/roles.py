"""Caller role labels.

Identity is established upstream; requests only carry a role label in the
``X-Role`` header, which is checked against each route's allowed roles.
"""

from fastapi import HTTPException, Request, status

from ..utils.logging import get_logger

logger = get_logger("auth.roles")

ROLE_ADMIN = "admin"
ROLE_RESPONDER = "responder"
ROLE_VIEWER = "viewer"
ALL_ROLES = (ROLE_ADMIN, ROLE_RESPONDER, ROLE_VIEWER)

ROLE_HEADER = "X-Role"
ACTOR_HEADER = "X-Actor"
DEFAULT_ROLE = ROLE_VIEWER


def get_role(request: Request) -> str:
    return request.headers.get(ROLE_HEADER) or DEFAULT_ROLE


def require_role(*allowed_roles: str):
    """Dependency factory: reject callers whose role label is not allowed."""

    async def _check(request: Request) -> str:
        role = get_role(request)
        if role not in allowed_roles:
            logger.warning("role_denied", role=role, path=request.url.path)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{role}' does not have access to this resource",
            )
        request.state.role = role
        return role

    return _check


def get_actor(request: Request) -> str:
    """Audit attribution: explicit actor header, else the role label."""
    return request.headers.get(ACTOR_HEADER) or get_role(request)
