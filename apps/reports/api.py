"""
API Router for Reports app.
Report requests are generated out of band; the owner lists, downloads
and deletes them here.
"""
from typing import Optional
from uuid import UUID

from django.http import FileResponse, HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.dtos import ActorDTO
from apps.core.pagination import paginate_queryset
from apps.identity.authentication import require_auth
from .models import Report, ReportStatus
from .schemas import ReportRequestIn, ReportOut, ReportPageOut, ReportQueuedOut, MessageOut
from . import services
from . import report_service

router = Router(tags=["Reports"])


def _report_out(report: Report) -> ReportOut:
    return ReportOut(
        id=report.id,
        user_id=report.user_id,
        report_type=report.report_type,
        filters=report.filters or {},
        status=report.status,
        filename=report.filename,
        file_path=report.file_path,
        error_message=report.error_message,
        created_at=report.created_at,
        updated_at=report.updated_at,
    )


def get_own_report(report_id: UUID, user) -> Report:
    report = services.get_user_report(report_id, user.id)
    if report is None:
        raise HttpError(404, "Report not found")
    return report


@router.post("/tasks/generate-report", response=ReportQueuedOut, auth=None)
def generate_report(request: HttpRequest, payload: ReportRequestIn):
    """
    Queue a CSV (or text "pdf") report of the caller's tasks.
    Returns immediately; poll GET /reports for the result.
    """
    user = require_auth(request)
    report = services.request_report(
        actor=ActorDTO.from_user(user),
        report_type=payload.report_type,
        filters=payload.to_filters(),
    )
    return ReportQueuedOut(
        message="Report generation started. You will be notified when it's ready.",
        report_id=report.id,
        status=ReportStatus.PROCESSING.value,
    )


@router.get("/reports", response=ReportPageOut, auth=None)
def list_reports(request: HttpRequest, page: Optional[int] = 1):
    """List the caller's reports, newest first, 10 per page."""
    user = require_auth(request)
    return paginate_queryset(services.list_reports(user.id), page, _report_out)


@router.get("/reports/{uuid:report_id}/download", auth=None)
def download_report(request: HttpRequest, report_id: UUID):
    """Download a completed report."""
    user = require_auth(request)
    report = get_own_report(report_id, user)

    if not report.is_ready:
        raise HttpError(400, "Report is not ready for download")

    handle = report_service.open_report(report.file_path)
    if handle is None:
        raise HttpError(404, "Report file not found")

    return FileResponse(handle, as_attachment=True, filename=report.filename)


@router.delete("/reports/{uuid:report_id}", response=MessageOut, auth=None)
def delete_report(request: HttpRequest, report_id: UUID):
    """Delete a report and its file."""
    user = require_auth(request)
    report = get_own_report(report_id, user)

    services.delete_report(report)
    return MessageOut(message="Report deleted successfully")
