"""Services for Identity app."""
import logging
from typing import List, Optional
from uuid import UUID

from django.contrib.auth import authenticate
from django.db import IntegrityError
from django.utils import timezone

from apps.core.exceptions import FieldValidationError
from .models import User
from .dtos import UserDTO, RegisterIn

logger = logging.getLogger(__name__)


def to_user_dto(user: User) -> UserDTO:
    return UserDTO(
        id=user.id,
        name=user.name,
        email=user.email,
        email_verified_at=user.email_verified_at,
        created_at=user.date_joined,
    )


def register_user(payload: RegisterIn) -> User:
    """
    Create an account.

    Raises:
        FieldValidationError: If the email is already registered
    """
    if User.objects.filter(email__iexact=payload.email).exists():
        raise FieldValidationError('email', "The email has already been taken.")

    try:
        user = User.objects.create_user(
            email=payload.email,
            password=payload.password,
            name=payload.name,
        )
    except IntegrityError:
        raise FieldValidationError('email', "The email has already been taken.")

    logger.info(f"Registered user {user.id}")
    return user


def authenticate_user(email: str, password: str) -> Optional[User]:
    """Return the active user for these credentials, or None."""
    user = authenticate(email=email.strip().lower(), password=password)
    if user is None or not user.is_active:
        return None

    User.objects.filter(id=user.id).update(last_login=timezone.now())
    return user


def get_active_user(user_id: UUID) -> Optional[User]:
    try:
        return User.objects.get(id=user_id, is_active=True)
    except User.DoesNotExist:
        return None


def user_exists(user_id: UUID) -> bool:
    return User.objects.filter(id=user_id, is_active=True).exists()


def list_assignable_users(exclude_user_id: UUID) -> List[User]:
    """Every active user except the caller, for the assignee picker."""
    return list(
        User.objects.filter(is_active=True)
        .exclude(id=exclude_user_id)
        .order_by('name')
    )
