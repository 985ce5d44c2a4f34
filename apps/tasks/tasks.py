"""Celery tasks for Tasks app."""
from celery import shared_task

from apps.core.celery_base import QueuedUnit
from . import jobs


class NotificationUnit(QueuedUnit):
    def failed(self, exc, task_id=None, action=None, **kwargs):
        jobs.notification_failed(exc, task_id=task_id, action=action)


class BulkUpdateUnit(QueuedUnit):
    def failed(self, exc, task_ids=None, actor=None, **kwargs):
        jobs.bulk_update_failed(exc, task_ids=task_ids or [], actor=actor or {})


@shared_task(base=NotificationUnit, name="apps.tasks.tasks.send_task_notification")
def send_task_notification(task_id, action):
    """
    Email the creator and assignee about a task change.
    """
    sent = jobs.send_task_notification(task_id=task_id, action=action)
    return f"Sent {sent} notifications for task {task_id}"


@shared_task(base=BulkUpdateUnit, name="apps.tasks.tasks.bulk_update_tasks")
def bulk_update_tasks(task_ids, update_data, actor):
    """
    Apply a status/priority change across many tasks as the captured actor.
    """
    count = jobs.bulk_update_tasks(task_ids=task_ids, update_data=update_data, actor=actor)
    return f"Updated {count} tasks"
