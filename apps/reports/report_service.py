"""
Report rendering service.
Builds CSV and plain-text task reports and writes them to default_storage.
"""
import csv
import io
import logging
from typing import Any, Dict, List
from uuid import UUID

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.tasks.models import Task
from apps.tasks.services import visible_tasks
from .models import ReportType

logger = logging.getLogger(__name__)

REPORT_DIR = 'reports'

CSV_HEADER = [
    'ID', 'Title', 'Description', 'Status', 'Priority',
    'Due Date', 'Created By', 'Assigned To', 'Created At', 'Updated At',
]

DATE_FORMAT = '%Y-%m-%d'
DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
SEPARATOR = '------------------------'


def _format_datetime(value) -> str:
    return timezone.localtime(value).strftime(DATETIME_FORMAT)


def get_report_tasks(user_id: UUID, filters: Dict[str, Any]) -> List[Task]:
    """
    Tasks visible to the user, newest first, narrowed by the report filters.

    ``start_date``/``end_date`` bound the creation day, both inclusive.
    """
    queryset = visible_tasks(user_id).select_related('created_by', 'assigned_to')

    if filters.get('status'):
        queryset = queryset.filter(status=filters['status'])

    if filters.get('priority'):
        queryset = queryset.filter(priority=filters['priority'])

    start_date = parse_date(filters['start_date']) if filters.get('start_date') else None
    if start_date:
        queryset = queryset.filter(created_at__date__gte=start_date)

    end_date = parse_date(filters['end_date']) if filters.get('end_date') else None
    if end_date:
        queryset = queryset.filter(created_at__date__lte=end_date)

    return list(queryset.order_by('-created_at'))


def render_csv(tasks: List[Task]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)

    for task in tasks:
        writer.writerow([
            task.id,
            task.title,
            task.description or '',
            task.status,
            task.priority,
            task.due_date.strftime(DATE_FORMAT) if task.due_date else '',
            task.created_by.name,
            task.assigned_to.name if task.assigned_to else 'Unassigned',
            _format_datetime(task.created_at),
            _format_datetime(task.updated_at),
        ])

    return output.getvalue()


def render_text(tasks: List[Task]) -> str:
    """Plain-text summary served for "pdf" reports."""
    lines = [
        "TASK REPORT",
        f"Generated on: {_format_datetime(timezone.now())}",
        f"Total tasks: {len(tasks)}",
        "",
    ]
    for task in tasks:
        lines += [
            f"ID: {task.id}",
            f"Title: {task.title}",
            f"Status: {task.status}",
            f"Priority: {task.priority}",
            f"Due Date: {task.due_date.strftime(DATE_FORMAT) if task.due_date else 'N/A'}",
            SEPARATOR,
        ]
    return "\n".join(lines) + "\n"


def write_report(tasks: List[Task], user_id: UUID, report_type: str) -> str:
    """
    Render and store a report.

    Returns:
        Storage-relative path of the written file

    Raises:
        ValueError: For an unsupported report type
    """
    if report_type == ReportType.CSV:
        content, extension = render_csv(tasks), 'csv'
    elif report_type == ReportType.PDF:
        content, extension = render_text(tasks), 'txt'
    else:
        raise ValueError(f"Unsupported report type: {report_type}")

    stamp = timezone.localtime().strftime('%Y-%m-%d_%H-%M-%S')
    path = f"{REPORT_DIR}/task_report_{user_id}_{stamp}.{extension}"
    return default_storage.save(path, ContentFile(content.encode('utf-8')))


def open_report(path: str):
    """Open a stored report for reading, or None when the blob is missing."""
    if not path or not default_storage.exists(path):
        return None
    return default_storage.open(path, 'rb')


def delete_report_file(path: str) -> None:
    if path and default_storage.exists(path):
        default_storage.delete(path)
