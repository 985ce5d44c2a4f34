"""Base class for Celery-backed units."""
import logging

from celery import Task
from django.conf import settings

logger = logging.getLogger(__name__)


class QueuedUnit(Task):
    """
    Retrying unit of work.

    Any exception is retried with exponential backoff until
    TASK_MAX_ATTEMPTS attempts have been made; then ``failed()`` runs once.
    Subclasses override ``failed`` with the unit's failure hook.
    """
    autoretry_for = (Exception,)
    max_retries = max(0, int(getattr(settings, 'TASK_MAX_ATTEMPTS', 3)) - 1)
    retry_backoff = True
    retry_backoff_max = 300
    retry_jitter = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(f"[CELERY] Task {self.name} failed permanently (id={task_id}): {exc}")
        self.failed(exc, **kwargs)

    def failed(self, exc, **kwargs):
        pass
