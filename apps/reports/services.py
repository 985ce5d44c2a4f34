"""Services for Reports app."""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from django.db.models import QuerySet

from apps.core.dtos import ActorDTO
from apps.core.task_service import TaskService
from . import report_service
from .models import Report, ReportStatus

logger = logging.getLogger(__name__)


def request_report(actor: ActorDTO, report_type: str, filters: Dict[str, Any]) -> Report:
    """
    Record a report in processing and queue its generation.
    """
    report = Report.objects.create(
        user_id=actor.id,
        report_type=report_type,
        filters=filters,
        status=ReportStatus.PROCESSING,
    )
    logger.info(f"Report {report.id} requested by {actor.id} ({report_type})")

    TaskService.generate_task_report(report.id, actor, filters, report_type)
    return report


def list_reports(user_id: UUID) -> QuerySet:
    return Report.objects.filter(user_id=user_id).order_by('-created_at', 'id')


def get_user_report(report_id: UUID, user_id: UUID) -> Optional[Report]:
    """The user's report, or None (other users' reports are not visible)."""
    return Report.objects.filter(id=report_id, user_id=user_id).first()


def delete_report(report: Report) -> None:
    """Delete the stored file, if any, then the row."""
    report_service.delete_report_file(report.file_path)
    logger.info(f"Deleted report {report.id}")
    report.delete()
