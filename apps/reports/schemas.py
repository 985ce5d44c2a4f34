"""API Schemas for Reports app."""
from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import date, datetime

from ninja import Schema
from pydantic import field_validator, ValidationInfo

from apps.tasks.models import TaskStatus, TaskPriority
from .models import ReportType


class ReportRequestIn(Schema):
    """Schema for requesting a report."""
    report_type: str = ReportType.CSV.value
    status: Optional[str] = None
    priority: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator('report_type')
    @classmethod
    def report_type_valid(cls, value):
        if value not in ReportType.values:
            raise ValueError("The selected report type is invalid.")
        return value

    @field_validator('status')
    @classmethod
    def status_valid(cls, value):
        if value is not None and value not in TaskStatus.values:
            raise ValueError("The selected status is invalid.")
        return value

    @field_validator('priority')
    @classmethod
    def priority_valid(cls, value):
        if value is not None and value not in TaskPriority.values:
            raise ValueError("The selected priority is invalid.")
        return value

    @field_validator('end_date')
    @classmethod
    def end_after_start(cls, value, info: ValidationInfo):
        start = info.data.get('start_date')
        if value is not None and start is not None and value < start:
            raise ValueError("The end date must be a date after or equal to start date.")
        return value

    def to_filters(self) -> Dict[str, Any]:
        """JSON-safe filter snapshot stored on the report and sent to the unit."""
        filters = {
            'status': self.status,
            'priority': self.priority,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
        }
        return {k: v for k, v in filters.items() if v is not None}


class ReportOut(Schema):
    id: UUID
    user_id: UUID
    report_type: str
    filters: Dict[str, Any]
    status: str
    filename: str
    file_path: str
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ReportPageOut(Schema):
    """One page of reports."""
    data: List[ReportOut]
    current_page: int
    last_page: int
    per_page: int
    total: int


class ReportQueuedOut(Schema):
    message: str
    report_id: UUID
    status: str


class MessageOut(Schema):
    message: str
