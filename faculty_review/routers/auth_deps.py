"""
Caller identity and role checks.

Authentication happens upstream; the session layer forwards the authenticated
user's id in a trusted header. These dependencies only resolve that id to a
user and enforce role-based access.
"""
import logging
from typing import Callable, List, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from faculty_review.core.config import settings
from faculty_review.core.exceptions import AuthenticationError, Unauthorized
from faculty_review.database import get_db
from faculty_review.models.user import User, UserRole

logger = logging.getLogger(__name__)


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias=settings.user_id_header),
    db: Session = Depends(get_db),
) -> User:
    if not x_user_id:
        logger.warning("Authentication failed: missing caller identity header")
        raise AuthenticationError("Missing caller identity")
    try:
        user_id = int(x_user_id)
    except ValueError:
        logger.warning("Authentication failed: malformed caller identity", extra={"header": x_user_id})
        raise AuthenticationError("Malformed caller identity")

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"Authentication failed: User {user_id} not found in database")
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning(f"Authentication failed: User {user_id} is inactive")
        raise AuthenticationError("User is inactive")
    return user


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.post("/publish")
        def publish(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise Unauthorized(
                f"Access denied. Required roles: {[r.value for r in allowed_roles]}",
                details={"role": current_user.role.value},
            )
        return current_user
    return role_checker


def require_admin():
    """Shorthand for term administration."""
    return require_role([UserRole.ADMIN])


def require_department_access(user: User, department_id: int):
    """Institution-wide roles see every department; others only their own."""
    if not user.is_department_scoped:
        return
    if user.department_id != department_id:
        raise Unauthorized("Access denied. You can only access your own department.")
