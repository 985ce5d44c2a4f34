from django.contrib import admin
from .models import Task, TaskAttachment, TaskComment


class TaskAttachmentInline(admin.TabularInline):
    model = TaskAttachment
    extra = 0
    readonly_fields = ['file_name', 'file_path', 'file_size', 'mime_type', 'thumbnail_path', 'uploaded_by', 'created_at']


class TaskCommentInline(admin.TabularInline):
    model = TaskComment
    extra = 0
    readonly_fields = ['user', 'edited_at', 'created_at', 'updated_at']


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'priority', 'due_date', 'created_by', 'assigned_to', 'deleted_at', 'created_at']
    list_filter = ['status', 'priority']
    search_fields = ['title', 'description']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [TaskAttachmentInline, TaskCommentInline]

    def get_queryset(self, request):
        return Task.all_objects.select_related('created_by', 'assigned_to')


@admin.register(TaskAttachment)
class TaskAttachmentAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'task', 'mime_type', 'file_size', 'uploaded_by', 'created_at']
    list_filter = ['mime_type']
    search_fields = ['file_name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(TaskComment)
class TaskCommentAdmin(admin.ModelAdmin):
    list_display = ['task', 'user', 'created_at', 'edited_at']
    search_fields = ['comment']
    readonly_fields = ['edited_at', 'created_at', 'updated_at']
