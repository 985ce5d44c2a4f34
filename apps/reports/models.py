"""Models for Reports app."""
import uuid
from django.conf import settings
from django.db import models


class ReportStatus(models.TextChoices):
    PROCESSING = 'processing', 'Processing'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'


class ReportType(models.TextChoices):
    CSV = 'csv', 'CSV'
    PDF = 'pdf', 'PDF'


class Report(models.Model):
    """
    A generated export of a user's tasks.
    Created in PROCESSING; the generation unit moves it to COMPLETED or FAILED.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reports'
    )
    report_type = models.CharField(max_length=10, choices=ReportType.choices, default=ReportType.CSV)
    filters = models.JSONField(default=dict, blank=True)
    status = models.CharField(
        max_length=20,
        choices=ReportStatus.choices,
        default=ReportStatus.PROCESSING
    )

    filename = models.CharField(max_length=255, blank=True, default='')
    file_path = models.CharField(max_length=500, blank=True, default='')
    error_message = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_report_type_display()} report for {self.user_id} ({self.status})"

    @property
    def is_ready(self) -> bool:
        return self.status == ReportStatus.COMPLETED
