"""
Identity API endpoints with bearer-token authentication.

Provides register, login, logout, the current-user profile and the
assignee candidate list.
"""
from typing import List, Optional
from ninja import Router, Schema
from django.http import HttpRequest
from ninja.errors import HttpError

from .authentication import require_auth
from .dtos import UserOut, UserSummaryOut, RegisterIn, LoginIn
from .jwt_auth import create_access_token, get_bearer_token, revoke_token
from .services import (
    to_user_dto,
    register_user,
    authenticate_user,
    list_assignable_users,
)

router = Router(tags=["Identity"])


# =============================================================================
# Schemas
# =============================================================================

class TokenResponse(Schema):
    message: str
    user: UserOut
    token: str


class MeResponse(Schema):
    user: UserOut


class MessageOut(Schema):
    message: str


def _user_out(user) -> UserOut:
    dto = to_user_dto(user)
    return UserOut(
        id=dto.id,
        name=dto.name,
        email=dto.email,
        email_verified_at=dto.email_verified_at,
        created_at=dto.created_at,
    )


# =============================================================================
# Auth Endpoints
# =============================================================================

@router.post("/auth/register", response={201: TokenResponse}, auth=None)
def register(request: HttpRequest, payload: RegisterIn):
    """
    Create an account and return an access token for it.
    """
    user = register_user(payload)
    token = create_access_token(user.id)
    return 201, TokenResponse(
        message="User registered successfully",
        user=_user_out(user),
        token=token,
    )


@router.post("/auth/login", response=TokenResponse, auth=None)
def login(request: HttpRequest, payload: LoginIn):
    """
    Authenticate with email/password and return a bearer token.
    """
    user = authenticate_user(payload.email, payload.password)
    if user is None:
        raise HttpError(401, "Invalid credentials")

    return TokenResponse(
        message="Login successful",
        user=_user_out(user),
        token=create_access_token(user.id),
    )


@router.post("/auth/logout", response=MessageOut, auth=None)
def logout(request: HttpRequest):
    """
    Revoke the bearer token used for this request.
    """
    require_auth(request)
    revoke_token(get_bearer_token(request))
    return MessageOut(message="Logged out successfully")


@router.get("/auth/me", response=MeResponse, auth=None)
def get_me(request: HttpRequest):
    """
    Get current authenticated user's profile.
    """
    user = require_auth(request)
    return MeResponse(user=_user_out(user))


# =============================================================================
# User Endpoints
# =============================================================================

@router.get("/users", response=List[UserSummaryOut], auth=None)
def list_users(request: HttpRequest):
    """
    List users that can be assigned tasks (everyone except the caller).
    """
    user = require_auth(request)
    return [
        UserSummaryOut(id=u.id, name=u.name, email=u.email)
        for u in list_assignable_users(user.id)
    ]
