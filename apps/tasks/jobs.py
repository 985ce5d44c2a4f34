"""
Deferred units for the Tasks app.

Plain functions with JSON-safe keyword arguments; every task backend
(in-process or Celery) calls them the same way.
"""
import logging
from typing import Any, Dict, List

from apps.core.dtos import ActorDTO
from apps.core.task_service import TaskService
from . import notification_service
from .models import Task
from .services import BULK_UPDATABLE_FIELDS, NotificationAction

logger = logging.getLogger(__name__)


def send_task_notification(task_id: str, action: str) -> int:
    """
    Email the task's creator and assignee about ``action``.

    Soft-deleted tasks are still notified about. A recipient whose mail
    fails is logged and skipped.

    Returns:
        Number of mails sent
    """
    task = (
        Task.all_objects.select_related('created_by', 'assigned_to')
        .filter(id=task_id)
        .first()
    )
    if task is None:
        logger.warning(f"Task {task_id} not found, skipping '{action}' notification")
        return 0

    sent = 0
    for recipient in notification_service.get_recipients(task):
        try:
            notification_service.send_notification(task, action, recipient)
            sent += 1
            logger.info(f"Sent '{action}' notification for task {task.id} to {recipient.email}")
        except Exception as e:
            logger.error(f"Failed to send '{action}' notification for task {task.id} to {recipient.email}: {e}")

    return sent


def notification_failed(exc: Exception, task_id: str, action: str) -> None:
    logger.error(f"Notification '{action}' for task {task_id} failed permanently: {exc}")


def bulk_update_tasks(task_ids: List[str], update_data: Dict[str, Any], actor: Dict[str, Any]) -> int:
    """
    Apply a status/priority change to many tasks.

    Tasks that are missing, or where the captured actor is neither creator
    nor assignee, are skipped. Each updated task gets an "updated"
    notification.

    Returns:
        Number of tasks updated
    """
    actor = ActorDTO.from_payload(actor)
    changes = {k: v for k, v in update_data.items() if k in BULK_UPDATABLE_FIELDS}
    logger.info(f"Bulk updating {len(task_ids)} tasks for user {actor.id}: {changes}")

    updated = 0
    for task_id in task_ids:
        task = Task.objects.filter(id=task_id).first()
        if task is None:
            logger.warning(f"Bulk update: task {task_id} not found, skipping")
            continue
        if not task.is_participant(actor.id):
            logger.warning(f"Bulk update: user {actor.id} may not modify task {task_id}, skipping")
            continue

        for key, value in changes.items():
            setattr(task, key, value)
        task.save()
        updated += 1

        TaskService.send_task_notification(task.id, NotificationAction.UPDATED)

    logger.info(f"Bulk update finished: {updated} of {len(task_ids)} tasks updated")
    return updated


def bulk_update_failed(exc: Exception, task_ids: List[str], actor: Dict[str, Any]) -> None:
    actor_id = actor.get('id') if isinstance(actor, dict) else actor
    logger.error(f"Bulk update of {len(task_ids)} tasks by user {actor_id} failed permanently: {exc}")
