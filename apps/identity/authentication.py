"""
Request authentication helpers shared by every router.

All endpoints are declared with ``auth=None`` and call ``require_auth``
themselves, so unauthenticated requests get a uniform 401.
"""
from typing import Optional

from django.http import HttpRequest
from ninja.errors import HttpError

from .jwt_auth import get_bearer_token, parse_access_token
from .models import User
from .services import get_active_user


def get_current_user(request: HttpRequest) -> Optional[User]:
    """
    Extract and validate user from the bearer access token.

    Returns User object if valid token, None otherwise.
    """
    token = get_bearer_token(request)
    if not token:
        return None

    parsed = parse_access_token(token)
    if not parsed:
        return None

    user_id, _, _ = parsed
    return get_active_user(user_id)


def require_auth(request: HttpRequest) -> User:
    """
    Require authentication. Raises 401 if not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HttpError(401, "Authentication required")
    return user
