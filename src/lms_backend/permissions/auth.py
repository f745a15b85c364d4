"""
Actor resolution for requests.

The host authentication layer (session cookie, SSO, API token) stores the
authenticated user id on `request.state.user_id`. The dependencies here turn
it into a Principal with the user's current roles.
"""

import logging
from typing import Optional
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from lms_backend.database import get_db
from lms_backend.model.auth import User
from lms_backend.model.role import Role, UserRole
from lms_backend.permissions.exceptions import PermissionDenied, Unauthenticated, acl_error_to_http_exception
from lms_backend.permissions.principal import Principal

logger = logging.getLogger(__name__)


class PrincipalBuilder:
    """Builder for creating Principal objects from the user and role tables"""

    @staticmethod
    def build(user_id: int, db: Session) -> Optional[Principal]:
        """Build the Principal of a user with its role names and ids, None for unknown users"""

        user = db.query(User.id).filter(User.id == user_id).first()
        if user is None:
            return None

        rows = (
            db.query(Role.id, Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .filter(UserRole.user_id == user_id)
            .all()
        )

        return Principal(
            user_id=user_id,
            roles=[name for _, name in rows],
            role_ids=[role_id for role_id, _ in rows],
        )


def get_optional_principal(request: Request, db: Session = Depends(get_db)) -> Optional[Principal]:
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        return None

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring malformed user id on request: {user_id!r}")
        return None

    principal = PrincipalBuilder.build(user_id, db)
    if principal is None:
        logger.warning(f"Authenticated user {user_id} does not exist")
    return principal


def get_current_principal(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise acl_error_to_http_exception(Unauthenticated())
    return principal


def require_role(role: str):
    """Dependency factory admitting only principals holding `role`"""

    def role_gate(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
        if principal is None:
            raise acl_error_to_http_exception(Unauthenticated())

        if not principal.has_role(role):
            raise acl_error_to_http_exception(PermissionDenied(f"Access denied. Required role: {role}"))

        return principal

    return role_gate
