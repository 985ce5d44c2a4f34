"""
API Router for Tasks app.
Handles tasks, attachments and comments. Every task-scoped endpoint is
limited to the task's creator and assignee.
"""
from typing import List, Optional
from uuid import UUID

from django.http import FileResponse, HttpRequest
from ninja import Router, File
from ninja.errors import HttpError
from ninja.files import UploadedFile

from apps.core.dtos import ActorDTO
from apps.core.exceptions import FieldValidationError
from apps.core.pagination import paginate_queryset
from apps.identity.authentication import require_auth
from apps.identity.dtos import UserSummaryOut
from .schemas import (
    TaskIn, TaskUpdateIn, BulkUpdateIn, CommentIn,
    TaskOut, TaskDetailOut, TaskPageOut, TaskResultOut,
    AttachmentOut, AttachmentResultOut, CommentOut, CommentResultOut,
    MessageOut,
)
from .models import Task, TaskAttachment, TaskComment
from . import services
from . import attachment_service
from . import comment_service

router = Router(tags=["Tasks"])


# =============================================================================
# Helper Functions
# =============================================================================

def _user_summary(user) -> Optional[UserSummaryOut]:
    if user is None:
        return None
    return UserSummaryOut(id=user.id, name=user.name, email=user.email)


def _task_out(task: Task) -> TaskOut:
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        user_id=task.created_by_id,
        assigned_to=task.assigned_to_id,
        user=_user_summary(task.created_by),
        assignee=_user_summary(task.assigned_to),
        attachments_count=getattr(task, 'attachments_count', 0),
        comments_count=getattr(task, 'comments_count', 0),
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _attachment_out(attachment: TaskAttachment) -> AttachmentOut:
    return AttachmentOut(
        id=attachment.id,
        task_id=attachment.task_id,
        file_name=attachment.file_name,
        file_path=attachment.file_path,
        file_size=attachment.file_size,
        mime_type=attachment.mime_type,
        thumbnail_path=attachment.thumbnail_path,
        uploaded_by=attachment.uploaded_by_id,
        uploader=_user_summary(attachment.uploaded_by),
        created_at=attachment.created_at,
        updated_at=attachment.updated_at,
    )


def _comment_out(comment: TaskComment) -> CommentOut:
    return CommentOut(
        id=comment.id,
        task_id=comment.task_id,
        user_id=comment.user_id,
        comment=comment.comment,
        user=_user_summary(comment.user),
        is_edited=comment.is_edited,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def get_accessible_task(task_id: UUID, user) -> Task:
    """Load a live task the user participates in, or raise 404/403."""
    task = services.get_task(task_id)
    if task is None:
        raise HttpError(404, "Task not found")
    if not services.can_access(task, user.id):
        raise HttpError(403, "Permission denied")
    return task


# =============================================================================
# Task Endpoints
# =============================================================================

@router.get("/tasks", response=TaskPageOut, auth=None)
def list_tasks(
    request: HttpRequest,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    sort_field: Optional[str] = None,
    sort_direction: Optional[str] = None,
    page: int = 1,
):
    """
    List tasks the caller created or is assigned to, 10 per page.
    """
    user = require_auth(request)
    queryset = services.list_tasks(
        user_id=user.id,
        status=status,
        priority=priority,
        search=search,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
    return paginate_queryset(queryset, page, _task_out)


@router.post("/tasks", response={201: TaskResultOut}, auth=None)
def create_task(request: HttpRequest, payload: TaskIn):
    """Create a task owned by the caller."""
    user = require_auth(request)
    task = services.create_task(
        created_by_id=user.id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        due_date=payload.due_date,
        assigned_to=payload.assigned_to,
    )
    return 201, TaskResultOut(message="Task created successfully", task=_task_out(task))


@router.post("/tasks/bulk-update", response=MessageOut, auth=None)
def bulk_update_tasks(request: HttpRequest, payload: BulkUpdateIn):
    """
    Queue a status/priority change for several tasks.
    Permissions are checked per task, as the caller, when the update runs.
    """
    user = require_auth(request)
    services.queue_bulk_update(
        actor=ActorDTO.from_user(user),
        task_ids=payload.task_ids,
        update_data={'status': payload.status, 'priority': payload.priority},
    )
    return MessageOut(message="Bulk update started. Tasks will be updated shortly.")


@router.get("/tasks/{uuid:task_id}", response=TaskDetailOut, auth=None)
def get_task(request: HttpRequest, task_id: UUID):
    """Get a task with its attachments and comments."""
    user = require_auth(request)
    task = get_accessible_task(task_id, user)

    return TaskDetailOut(
        **_task_out(task).dict(),
        attachments=[_attachment_out(a) for a in attachment_service.list_attachments(task.id)],
        comments=[_comment_out(c) for c in comment_service.list_comments(task.id)],
    )


@router.put("/tasks/{uuid:task_id}", response=TaskResultOut, auth=None)
def update_task(request: HttpRequest, task_id: UUID, payload: TaskUpdateIn):
    """Update the fields present in the body."""
    user = require_auth(request)
    task = get_accessible_task(task_id, user)

    task = services.update_task(task, payload.dict(exclude_unset=True))
    return TaskResultOut(message="Task updated successfully", task=_task_out(task))


@router.delete("/tasks/{uuid:task_id}", response=MessageOut, auth=None)
def delete_task(request: HttpRequest, task_id: UUID):
    """Soft-delete a task. Creator only."""
    user = require_auth(request)
    task = services.get_task(task_id)
    if task is None:
        raise HttpError(404, "Task not found")
    if not services.can_delete(task, user.id):
        raise HttpError(403, "Permission denied")

    services.delete_task(task)
    return MessageOut(message="Task deleted successfully")


# =============================================================================
# Attachment Endpoints
# =============================================================================

@router.get("/tasks/{uuid:task_id}/attachments", response=List[AttachmentOut], auth=None)
def list_attachments(request: HttpRequest, task_id: UUID):
    """List a task's attachments, newest first."""
    user = require_auth(request)
    task = get_accessible_task(task_id, user)
    return [_attachment_out(a) for a in attachment_service.list_attachments(task.id)]


@router.post("/tasks/{uuid:task_id}/attachments", response={201: AttachmentResultOut}, auth=None)
def upload_attachment(request: HttpRequest, task_id: UUID, file: UploadedFile = File(...)):
    """
    Upload a file to a task (max 10 MB).
    Images also get a 150x150 JPEG thumbnail.
    """
    user = require_auth(request)
    task = get_accessible_task(task_id, user)

    try:
        attachment = attachment_service.upload_attachment(
            file=file,
            task_id=task.id,
            uploaded_by_id=user.id,
        )
    except FieldValidationError:
        raise
    except Exception as e:
        raise HttpError(500, f"File upload failed: {e}")

    attachment = attachment_service.get_attachment(attachment.id)
    return 201, AttachmentResultOut(
        message="File uploaded successfully",
        attachment=_attachment_out(attachment),
    )


def get_accessible_attachment(attachment_id: UUID, user) -> TaskAttachment:
    attachment = attachment_service.get_attachment(attachment_id)
    if attachment is None:
        raise HttpError(404, "Attachment not found")
    if not services.can_access(attachment.task, user.id):
        raise HttpError(403, "Permission denied")
    return attachment


@router.get("/attachments/{uuid:attachment_id}/download", auth=None)
def download_attachment(request: HttpRequest, attachment_id: UUID):
    """Download an attachment under its original filename."""
    user = require_auth(request)
    attachment = get_accessible_attachment(attachment_id, user)

    handle = attachment_service.open_attachment(attachment)
    if handle is None:
        raise HttpError(404, "File not found")

    return FileResponse(
        handle,
        as_attachment=True,
        filename=attachment.file_name,
        content_type=attachment.mime_type,
    )


@router.delete("/attachments/{uuid:attachment_id}", response=MessageOut, auth=None)
def delete_attachment(request: HttpRequest, attachment_id: UUID):
    """Delete an attachment and its stored files."""
    user = require_auth(request)
    attachment = get_accessible_attachment(attachment_id, user)

    try:
        attachment_service.delete_attachment(attachment)
    except Exception as e:
        raise HttpError(500, f"Failed to delete attachment: {e}")

    return MessageOut(message="Attachment deleted successfully")


# =============================================================================
# Comment Endpoints
# =============================================================================

@router.get("/tasks/{uuid:task_id}/comments", response=List[CommentOut], auth=None)
def list_comments(request: HttpRequest, task_id: UUID):
    """List a task's comments, newest first."""
    user = require_auth(request)
    task = get_accessible_task(task_id, user)
    return [_comment_out(c) for c in comment_service.list_comments(task.id)]


@router.post("/tasks/{uuid:task_id}/comments", response={201: CommentResultOut}, auth=None)
def add_comment(request: HttpRequest, task_id: UUID, payload: CommentIn):
    """Comment on a task."""
    user = require_auth(request)
    task = get_accessible_task(task_id, user)

    comment = comment_service.add_comment(task.id, user.id, payload.comment)
    return 201, CommentResultOut(message="Comment added successfully", comment=_comment_out(comment))


@router.put("/comments/{uuid:comment_id}", response=CommentResultOut, auth=None)
def update_comment(request: HttpRequest, comment_id: UUID, payload: CommentIn):
    """Edit a comment. Author only."""
    user = require_auth(request)
    comment = comment_service.get_comment(comment_id)
    if comment is None:
        raise HttpError(404, "Comment not found")
    if not comment_service.can_edit(comment, user.id):
        raise HttpError(403, "Permission denied")

    comment = comment_service.edit_comment(comment, payload.comment)
    return CommentResultOut(message="Comment updated successfully", comment=_comment_out(comment))


@router.delete("/comments/{uuid:comment_id}", response=MessageOut, auth=None)
def delete_comment(request: HttpRequest, comment_id: UUID):
    """Delete a comment. Author or the task's creator."""
    user = require_auth(request)
    comment = comment_service.get_comment(comment_id)
    if comment is None:
        raise HttpError(404, "Comment not found")
    if not comment_service.can_delete(comment, user.id):
        raise HttpError(403, "Permission denied")

    comment_service.delete_comment(comment)
    return MessageOut(message="Comment deleted successfully")
