"""
API Schemas for Tasks app.
Pydantic/Ninja schemas for request/response validation.
"""
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime

from django.utils import timezone
from ninja import Schema
from pydantic import field_validator

from apps.identity.dtos import UserSummaryOut
from .models import TaskStatus, TaskPriority


# =============================================================================
# Shared validators
# =============================================================================

def _check_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("The title field is required.")
    if len(value) > 255:
        raise ValueError("The title may not be greater than 255 characters.")
    return value


def _check_choice(value: Optional[str], choices, field: str) -> Optional[str]:
    if value is not None and value not in choices:
        raise ValueError(f"The selected {field} is invalid.")
    return value


def _check_due_date(value: Optional[date]) -> Optional[date]:
    if value is not None and value < timezone.localdate():
        raise ValueError("The due date must be a date after or equal to today.")
    return value


# =============================================================================
# Request Schemas
# =============================================================================

class TaskIn(Schema):
    """Schema for creating a task."""
    title: str
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[date] = None
    assigned_to: Optional[UUID] = None

    @field_validator('title')
    @classmethod
    def title_valid(cls, value):
        return _check_title(value)

    @field_validator('status')
    @classmethod
    def status_valid(cls, value):
        return _check_choice(value, TaskStatus.values, 'status')

    @field_validator('priority')
    @classmethod
    def priority_valid(cls, value):
        return _check_choice(value, TaskPriority.values, 'priority')

    @field_validator('due_date')
    @classmethod
    def due_date_valid(cls, value):
        return _check_due_date(value)


class TaskUpdateIn(TaskIn):
    """Schema for updating a task. Only fields present in the body change."""
    title: Optional[str] = None


class BulkUpdateIn(Schema):
    """Schema for a bulk status/priority change."""
    task_ids: List[UUID]
    status: Optional[str] = None
    priority: Optional[str] = None

    @field_validator('task_ids')
    @classmethod
    def task_ids_present(cls, value):
        if not value:
            raise ValueError("The task ids field is required.")
        return value

    @field_validator('status')
    @classmethod
    def status_valid(cls, value):
        return _check_choice(value, TaskStatus.values, 'status')

    @field_validator('priority')
    @classmethod
    def priority_valid(cls, value):
        return _check_choice(value, TaskPriority.values, 'priority')


class CommentIn(Schema):
    """Schema for creating or editing a comment."""
    comment: str

    @field_validator('comment')
    @classmethod
    def comment_valid(cls, value):
        if not value or not value.strip():
            raise ValueError("The comment field is required.")
        if len(value) > 1000:
            raise ValueError("The comment may not be greater than 1000 characters.")
        return value


# =============================================================================
# Response Schemas
# =============================================================================

class TaskOut(Schema):
    """Task as shown in lists."""
    id: UUID
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[date] = None
    user_id: UUID
    assigned_to: Optional[UUID] = None
    user: UserSummaryOut
    assignee: Optional[UserSummaryOut] = None
    attachments_count: int = 0
    comments_count: int = 0
    created_at: datetime
    updated_at: datetime


class AttachmentOut(Schema):
    """Task attachment output."""
    id: UUID
    task_id: UUID
    file_name: str
    file_path: str
    file_size: int
    mime_type: str
    thumbnail_path: Optional[str] = None
    uploaded_by: UUID
    uploader: UserSummaryOut
    created_at: datetime
    updated_at: datetime


class CommentOut(Schema):
    """Task comment output."""
    id: UUID
    task_id: UUID
    user_id: UUID
    comment: str
    user: UserSummaryOut
    is_edited: bool
    created_at: datetime
    updated_at: datetime


class TaskDetailOut(TaskOut):
    """Task with its attachments and comments."""
    attachments: List[AttachmentOut] = []
    comments: List[CommentOut] = []


class TaskPageOut(Schema):
    """One page of tasks."""
    data: List[TaskOut]
    current_page: int
    last_page: int
    per_page: int
    total: int


class TaskResultOut(Schema):
    message: str
    task: TaskOut


class AttachmentResultOut(Schema):
    message: str
    attachment: AttachmentOut


class CommentResultOut(Schema):
    message: str
    comment: CommentOut


class MessageOut(Schema):
    """Plain acknowledgement."""
    message: str
