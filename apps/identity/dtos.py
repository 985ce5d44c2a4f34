"""DTOs for Identity app."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from ninja import Schema
from pydantic import field_validator, ValidationInfo


@dataclass(frozen=True)
class UserDTO:
    id: UUID
    name: str
    email: str
    email_verified_at: Optional[datetime]
    created_at: datetime


class UserOut(Schema):
    id: UUID
    name: str
    email: str
    email_verified_at: Optional[datetime] = None
    created_at: datetime


class UserSummaryOut(Schema):
    """Compact user shape embedded in tasks, comments and attachments."""
    id: UUID
    name: str
    email: str


class RegisterIn(Schema):
    name: str
    email: str
    password: str
    password_confirmation: str

    @field_validator('name')
    @classmethod
    def name_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("The name field is required.")
        if len(value) > 255:
            raise ValueError("The name may not be greater than 255 characters.")
        return value

    @field_validator('email')
    @classmethod
    def email_valid(cls, value: str) -> str:
        value = value.strip().lower()
        try:
            validate_email(value)
        except DjangoValidationError:
            raise ValueError("The email must be a valid email address.")
        return value

    @field_validator('password')
    @classmethod
    def password_length(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("The password must be at least 8 characters.")
        return value

    @field_validator('password_confirmation')
    @classmethod
    def password_confirmed(cls, value: str, info: ValidationInfo) -> str:
        if 'password' in info.data and value != info.data['password']:
            raise ValueError("The password confirmation does not match.")
        return value


class LoginIn(Schema):
    email: str
    password: str
