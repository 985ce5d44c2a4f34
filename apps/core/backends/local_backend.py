"""
Local Task Backend - In-process execution for development and tests.

This backend executes units immediately in the same process.
No Redis or worker required.

It mirrors the queue runtime's accounting: a failing unit is retried up to
TASK_MAX_ATTEMPTS times, then its failure hook runs. The calling request is
never failed by a unit.

Usage:
    Set TASK_BACKEND=local in your .env file.
"""

import uuid
import logging
from typing import Any, Callable, Dict, Optional
from apps.core.task_service import TaskServiceInterface, get_max_attempts

logger = logging.getLogger(__name__)


# Task handler registry - maps task names to handler functions
TASK_HANDLERS: Dict[str, Callable] = {}

# Terminal failure hooks - called with (exc, **payload) after the last attempt
FAILURE_HOOKS: Dict[str, Callable] = {}


def register_handler(task_name: str, on_failure: Optional[Callable] = None):
    """Decorator to register a task handler and its failure hook."""
    def decorator(func):
        TASK_HANDLERS[task_name] = func
        if on_failure is not None:
            FAILURE_HOOKS[task_name] = on_failure
        return func
    return decorator


class LocalTaskService(TaskServiceInterface):
    """
    Execute units synchronously in the same process.

    This is ideal for:
    - Local development without Docker/Redis
    - Unit testing with immediate execution
    - Debugging task logic

    Note: Units run in the same request cycle, so they block
    the response. Only use for development.
    """

    def send_task(
        self,
        task_name: str,
        payload: Dict[str, Any],
        delay_seconds: int = 0,
    ) -> str:
        """Execute task synchronously."""
        task_id = str(uuid.uuid4())

        logger.info(f"[LOCAL] Executing task {task_name} (id={task_id})")

        if delay_seconds > 0:
            logger.warning(
                f"[LOCAL] delay_seconds={delay_seconds} ignored in local backend"
            )

        handler = TASK_HANDLERS.get(task_name)
        if not handler:
            logger.warning(f"[LOCAL] No handler registered for task: {task_name}")
            return task_id

        max_attempts = get_max_attempts()
        for attempt in range(1, max_attempts + 1):
            try:
                result = handler(**payload)
                logger.info(f"[LOCAL] Task {task_name} completed: {result}")
                return task_id
            except Exception as e:
                logger.exception(
                    f"[LOCAL] Task {task_name} failed (attempt {attempt}/{max_attempts}): {e}"
                )
                if attempt == max_attempts:
                    self._run_failure_hook(task_name, e, payload)

        return task_id

    @staticmethod
    def _run_failure_hook(task_name: str, exc: Exception, payload: Dict[str, Any]) -> None:
        hook = FAILURE_HOOKS.get(task_name)
        if hook is None:
            logger.error(f"[LOCAL] Task {task_name} exhausted its attempts: {exc}")
            return
        hook(exc, **payload)


# =============================================================================
# Task Handlers - Import and register actual unit implementations
# =============================================================================

def _notification_failed(exc, task_id: str, action: str, **kwargs):
    from apps.tasks import jobs
    jobs.notification_failed(exc, task_id=task_id, action=action)


def _bulk_update_failed(exc, task_ids, update_data, actor, **kwargs):
    from apps.tasks import jobs
    jobs.bulk_update_failed(exc, task_ids=task_ids, actor=actor)


def _report_failed(exc, report_id: Optional[str], user_id: str, **kwargs):
    from apps.reports import jobs
    jobs.report_failed(exc, report_id=report_id, user_id=user_id)


@register_handler("send_task_notification", on_failure=_notification_failed)
def handle_send_task_notification(task_id: str, action: str):
    """Email the creator and assignee synchronously."""
    from apps.tasks import jobs
    sent = jobs.send_task_notification(task_id=task_id, action=action)
    return f"Sent {sent} notifications for task {task_id}"


@register_handler("bulk_update_tasks", on_failure=_bulk_update_failed)
def handle_bulk_update_tasks(task_ids, update_data, actor):
    """Apply a bulk status/priority change synchronously."""
    from apps.tasks import jobs
    count = jobs.bulk_update_tasks(task_ids=task_ids, update_data=update_data, actor=actor)
    return f"Updated {count} tasks"


@register_handler("generate_task_report", on_failure=_report_failed)
def handle_generate_task_report(report_id, user_id, filters, report_type):
    """Generate a task report synchronously."""
    from apps.reports import jobs
    report = jobs.generate_task_report(
        report_id=report_id,
        user_id=user_id,
        filters=filters,
        report_type=report_type,
    )
    return f"Report {report.id} is {report.status}"
