"""Celery tasks for Reports app."""
from celery import shared_task

from apps.core.celery_base import QueuedUnit
from . import jobs


class ReportUnit(QueuedUnit):
    def failed(self, exc, report_id=None, user_id=None, **kwargs):
        jobs.report_failed(exc, report_id=report_id, user_id=user_id)


@shared_task(base=ReportUnit, name="apps.reports.tasks.generate_task_report")
def generate_task_report(report_id, user_id, filters, report_type):
    """
    Generate a CSV or text report of the user's tasks.
    """
    report = jobs.generate_task_report(
        report_id=report_id,
        user_id=user_id,
        filters=filters,
        report_type=report_type,
    )
    return f"Report {report.id} is {report.status}"
