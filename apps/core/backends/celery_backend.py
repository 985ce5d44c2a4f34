"""
Celery Task Backend - Async execution via Celery + Redis.

Usage:
    Set TASK_BACKEND=celery in your .env file.
    Requires Redis and a Celery worker running:

        celery -A config worker -l info
"""

import uuid
import logging
from typing import Any, Dict
from apps.core.task_service import TaskServiceInterface

logger = logging.getLogger(__name__)


# Map task names to Celery task functions
CELERY_TASKS = {
    "send_task_notification": "apps.tasks.tasks.send_task_notification",
    "bulk_update_tasks": "apps.tasks.tasks.bulk_update_tasks",
    "generate_task_report": "apps.reports.tasks.generate_task_report",
}


def _get_celery_task(task_name: str):
    """Get the Celery task function for a task name."""
    task_path = CELERY_TASKS.get(task_name)
    if not task_path:
        raise ValueError(f"No Celery task mapped for: {task_name}")

    from celery import current_app
    return current_app.tasks.get(task_path)


class CeleryTaskService(TaskServiceInterface):
    """
    Execute units via Celery + Redis.

    Retries and the terminal failure hook are handled by the task
    classes themselves (see apps.core.celery_base).
    """

    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """Queue task via Celery."""
        task_id = str(uuid.uuid4())

        logger.info(f"[CELERY] Queueing task {task_name} (id={task_id})")

        task = _get_celery_task(task_name)

        if task is None:
            logger.error(f"[CELERY] Task not found: {task_name}")
            raise ValueError(f"Celery task not found: {task_name}")

        if delay_seconds > 0:
            task.apply_async(kwargs=payload, countdown=delay_seconds, task_id=task_id)
        else:
            task.apply_async(kwargs=payload, task_id=task_id)

        return task_id
