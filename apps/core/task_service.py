"""
TaskService - Abstraction layer for background unit execution.

This module provides a platform-agnostic interface for the three deferred
units of work (task notifications, bulk updates, report generation).
The actual backend is determined by the TASK_BACKEND setting.

Usage:
    from apps.core.task_service import TaskService

    # Email the creator/assignee about a change
    TaskService.send_task_notification(task_id=task.id, action='created')

    # Generate a report out of band
    TaskService.generate_task_report(report_id, actor, filters, 'csv')

Environment Configuration:
    TASK_BACKEND=local   # In-process execution (development/tests)
    TASK_BACKEND=celery  # Celery + Redis (production)

Payloads are plain JSON (ids as strings) so every backend can ship them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from django.conf import settings

from .dtos import ActorDTO

logger = logging.getLogger(__name__)


class TaskServiceInterface(ABC):
    """
    Abstract interface for background unit execution.

    Implementations:
    - LocalTaskService: In-process execution with retries, for development/testing
    - CeleryTaskService: Celery + Redis
    """

    @abstractmethod
    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """
        Queue a unit for async execution.

        Args:
            task_name: Identifier for the unit handler
            payload: JSON-safe keyword arguments for the handler
            delay_seconds: Delay before execution (0 = immediate)

        Returns:
            Task ID for tracking
        """
        pass


def get_max_attempts() -> int:
    """Attempts per unit before its failure hook runs."""
    return max(1, int(getattr(settings, 'TASK_MAX_ATTEMPTS', 3)))


def _get_backend() -> TaskServiceInterface:
    """Get the configured task backend based on the TASK_BACKEND setting."""
    backend = getattr(settings, 'TASK_BACKEND', 'local')

    if backend == 'local':
        from apps.core.backends.local_backend import LocalTaskService
        return LocalTaskService()
    elif backend == 'celery':
        from apps.core.backends.celery_backend import CeleryTaskService
        return CeleryTaskService()
    else:
        raise ValueError(f"Unknown TASK_BACKEND: {backend}")


class TaskService:
    """
    Facade for sending background units.

    This class provides static methods for each unit type,
    delegating to the configured backend.
    """

    @staticmethod
    def send_task_notification(task_id: UUID, action: str) -> str:
        """
        Queue an email to the task's creator and assignee.

        Used by: task create/update endpoints and the bulk update unit.
        """
        logger.info(f"Queueing send_task_notification for task {task_id} ({action})")
        return _get_backend().send_task(
            task_name="send_task_notification",
            payload={"task_id": str(task_id), "action": action},
        )

    @staticmethod
    def bulk_update_tasks(task_ids: Iterable[UUID], update_data: Dict[str, str], actor: ActorDTO) -> str:
        """
        Queue a status/priority change across many tasks.

        The actor is captured now; the unit checks permissions against it.
        """
        task_ids = [str(task_id) for task_id in task_ids]
        logger.info(f"Queueing bulk_update_tasks for {len(task_ids)} tasks by user {actor.id}")
        return _get_backend().send_task(
            task_name="bulk_update_tasks",
            payload={
                "task_ids": task_ids,
                "update_data": dict(update_data),
                "actor": actor.to_payload(),
            },
        )

    @staticmethod
    def generate_task_report(
        report_id: Optional[UUID],
        actor: ActorDTO,
        filters: Dict[str, Any],
        report_type: str,
    ) -> str:
        """
        Queue CSV/text report generation for the actor's visible tasks.

        Used by: the generate-report endpoint, after the Report row exists.
        Without a report_id the row is created here, once, so every attempt
        and the failure hook act on the same report.
        """
        if not report_id:
            from apps.reports.jobs import create_report
            report_id = create_report(actor.id, filters, report_type).id

        logger.info(f"Queueing generate_task_report for report {report_id} ({report_type})")
        return _get_backend().send_task(
            task_name="generate_task_report",
            payload={
                "report_id": str(report_id) if report_id else None,
                "user_id": str(actor.id),
                "filters": filters,
                "report_type": report_type,
            },
        )
