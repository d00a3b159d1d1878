"""
Caller identity and order access policy.

Sign-up and login live in a separate service; requests here carry the
authenticated user's id in the ``X-User-Id`` header.
"""
import logging
from typing import Optional

from fastapi import Depends, Header
from starlette import status

import database
from responses import APIError

logger = logging.getLogger(__name__)

CALLER_FIELDS = {"name": 1, "email": 1, "is_admin": 1}


def get_current_user(x_user_id: Optional[str] = Header(None)) -> dict:
    if not x_user_id:
        raise APIError(status.HTTP_401_UNAUTHORIZED, "Authentication required")
    if not database.is_valid_id(x_user_id):
        raise APIError(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    try:
        user = database.get_document_by_id("user", x_user_id, CALLER_FIELDS)
    except Exception:
        logger.exception("Failed to look up user %s", x_user_id)
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to authenticate request")
    if not user:
        raise APIError(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")
    return user


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if not user.get("is_admin", False):
        raise APIError(status.HTTP_403_FORBIDDEN, "Admin privileges required")
    return user


def owner_id(order: dict) -> Optional[str]:
    # populated orders carry the user summary, raw ones only the id
    user = order.get("user")
    if isinstance(user, dict) and user.get("_id"):
        return str(user["_id"])
    return order.get("user_id")


def ensure_order_access(order: dict, user: dict) -> None:
    """Owners see their own orders; admins see every order."""
    if user.get("is_admin", False):
        return
    if owner_id(order) != str(user["_id"]):
        raise APIError(status.HTTP_403_FORBIDDEN, "Unauthorized")
