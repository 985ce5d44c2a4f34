from django.contrib import admin
from .models import Report


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'report_type', 'status', 'filename', 'created_at']
    list_filter = ['report_type', 'status']
    search_fields = ['filename', 'user__email']
    readonly_fields = ['created_at', 'updated_at']
