"""Comment service for Tasks app."""
import logging
from typing import List, Optional
from uuid import UUID

from django.utils import timezone

from .models import TaskComment

logger = logging.getLogger(__name__)


def list_comments(task_id: UUID) -> List[TaskComment]:
    """Comments on a task, newest first."""
    return list(
        TaskComment.objects.filter(task_id=task_id)
        .select_related('user')
        .order_by('-created_at')
    )


def get_comment(comment_id: UUID) -> Optional[TaskComment]:
    return (
        TaskComment.objects.select_related('task', 'user')
        .filter(id=comment_id, task__deleted_at__isnull=True)
        .first()
    )


def add_comment(task_id: UUID, user_id: UUID, text: str) -> TaskComment:
    comment = TaskComment.objects.create(task_id=task_id, user_id=user_id, comment=text)
    logger.info(f"Comment {comment.id} added to task {task_id}")
    return get_comment(comment.id)


def edit_comment(comment: TaskComment, text: str) -> TaskComment:
    comment.comment = text
    comment.edited_at = timezone.now()
    comment.save(update_fields=['comment', 'edited_at', 'updated_at'])
    return comment


def can_edit(comment: TaskComment, user_id: UUID) -> bool:
    """Only the author edits."""
    return comment.user_id == user_id


def can_delete(comment: TaskComment, user_id: UUID) -> bool:
    """Author or the task's creator."""
    return comment.user_id == user_id or comment.task.created_by_id == user_id


def delete_comment(comment: TaskComment) -> None:
    logger.info(f"Deleting comment {comment.id}")
    comment.delete()
