"""Deferred report generation unit."""
import logging
import os
from typing import Any, Dict, Optional

from . import report_service
from .models import Report, ReportStatus

logger = logging.getLogger(__name__)


def create_report(user_id: str, filters: Dict[str, Any], report_type: str) -> Report:
    """Record a new report in processing."""
    return Report.objects.create(
        user_id=user_id,
        report_type=report_type,
        filters=filters or {},
        status=ReportStatus.PROCESSING,
    )


def generate_task_report(report_id: Optional[str], user_id: str, filters: Dict[str, Any], report_type: str) -> Report:
    """
    Render the user's filtered tasks and mark the report completed.

    A report that is no longer processing is returned untouched, so a
    redelivered unit does not overwrite a finished report. On error the
    message is recorded and the exception re-raised for retry; the report
    is marked failed only by ``report_failed`` after the last attempt.

    When no report_id is given the report is created here. No retry or
    failure hook can find that row again, so it is marked failed on error.
    """
    logger.info(f"Starting {report_type} report generation for user {user_id} (report={report_id}, filters={filters})")

    report = None
    try:
        if report_id:
            report = Report.objects.get(id=report_id)
        else:
            report = create_report(user_id, filters, report_type)

        if report.status != ReportStatus.PROCESSING:
            logger.warning(f"Report {report.id} is already {report.status}, skipping generation")
            return report

        tasks = report_service.get_report_tasks(user_id, filters or {})
        file_path = report_service.write_report(tasks, user_id, report_type)

        report.status = ReportStatus.COMPLETED
        report.file_path = file_path
        report.filename = os.path.basename(file_path)
        report.error_message = None
        report.save()

        logger.info(f"Report generated successfully: {file_path}")
        return report

    except Exception as e:
        logger.error(f"Failed to generate report {report_id}: {e}")
        if report is not None:
            report.error_message = str(e)
            fields = ['error_message', 'updated_at']
            if not report_id:
                report.status = ReportStatus.FAILED
                fields.append('status')
            report.save(update_fields=fields)
        raise


def report_failed(exc: Exception, report_id: Optional[str], user_id: str) -> None:
    """Terminal failure hook: mark the report failed."""
    logger.error(f"Report generation for user {user_id} failed permanently: {exc}")
    if not report_id:
        return

    Report.objects.filter(id=report_id, status=ReportStatus.PROCESSING).update(
        status=ReportStatus.FAILED,
        error_message=str(exc),
    )
