"""
Core services for Tasks app.
Handles task queries, mutations, access rules and enqueueing of
notification and bulk-update units.
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from django.db.models import Count, Q, QuerySet

from apps.core.dtos import ActorDTO
from apps.core.exceptions import FieldValidationError
from apps.core.task_service import TaskService
from apps.identity.services import user_exists
from .models import Task, TaskStatus, TaskPriority

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {'created_at', 'updated_at', 'due_date', 'title', 'status', 'priority'}
DEFAULT_SORT_FIELD = 'created_at'

UPDATABLE_FIELDS = {'title', 'description', 'status', 'priority', 'due_date', 'assigned_to'}
BULK_UPDATABLE_FIELDS = {'status', 'priority'}


class NotificationAction:
    CREATED = 'created'
    UPDATED = 'updated'
    STATUS_UPDATED = 'status_updated'


# =============================================================================
# Access Rules
# =============================================================================

def can_access(task: Task, user_id: UUID) -> bool:
    """Creator or assignee may view, edit, comment and attach."""
    return task.is_participant(user_id)


def can_delete(task: Task, user_id: UUID) -> bool:
    """Only the creator may delete a task."""
    return task.created_by_id == user_id


# =============================================================================
# Queries
# =============================================================================

def visible_tasks(user_id: UUID) -> QuerySet:
    """Tasks the user created or is assigned to (soft-deleted excluded)."""
    return Task.objects.filter(Q(created_by_id=user_id) | Q(assigned_to_id=user_id))


def _with_relations(queryset: QuerySet) -> QuerySet:
    return queryset.select_related('created_by', 'assigned_to').annotate(
        attachments_count=Count('attachments', distinct=True),
        comments_count=Count('comments', distinct=True),
    )


def list_tasks(
    user_id: UUID,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    sort_field: Optional[str] = None,
    sort_direction: Optional[str] = None,
) -> QuerySet:
    """
    Filtered, sorted task list for the user.

    ``status``/``priority`` of "all" (or empty) mean no filter. ``search``
    matches title OR description, case-insensitively. Unknown sort fields
    fall back to created_at; direction defaults to descending.
    """
    queryset = visible_tasks(user_id)

    if status and status != 'all':
        queryset = queryset.filter(status=status)

    if priority and priority != 'all':
        queryset = queryset.filter(priority=priority)

    if search:
        queryset = queryset.filter(
            Q(title__icontains=search) | Q(description__icontains=search)
        )

    field = sort_field if sort_field in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
    order = field if (sort_direction or '').lower() == 'asc' else f'-{field}'
    # id as tiebreaker keeps pagination stable
    return _with_relations(queryset).order_by(order, 'id')


def get_task(task_id: UUID) -> Optional[Task]:
    """Get a live task with creator/assignee and counts loaded."""
    return _with_relations(Task.objects.filter(id=task_id)).first()


# =============================================================================
# Mutations
# =============================================================================

def _validate_assignee(assigned_to: Optional[UUID]) -> None:
    if assigned_to is not None and not user_exists(assigned_to):
        raise FieldValidationError('assigned_to', "The selected assigned to is invalid.")


def create_task(
    created_by_id: UUID,
    title: str,
    description: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    due_date=None,
    assigned_to: Optional[UUID] = None,
) -> Task:
    """
    Create a task and queue the "created" notification.

    Raises:
        FieldValidationError: If the assignee does not exist
    """
    _validate_assignee(assigned_to)

    task = Task.objects.create(
        title=title,
        description=description,
        status=status or TaskStatus.PENDING,
        priority=priority or TaskPriority.MEDIUM,
        due_date=due_date,
        created_by_id=created_by_id,
        assigned_to_id=assigned_to,
    )
    logger.info(f"Task {task.id} created by {created_by_id}")

    TaskService.send_task_notification(task.id, NotificationAction.CREATED)
    return get_task(task.id)


def update_task(task: Task, data: Dict[str, Any]) -> Task:
    """
    Apply a partial update and queue the matching notification.

    ``data`` holds only the fields the caller sent. A changed status queues
    "status_updated"; anything else queues "updated".

    Raises:
        FieldValidationError: On a null title/status/priority or unknown assignee
    """
    data = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}

    for field in ('title', 'status', 'priority'):
        if field in data and data[field] is None:
            message = ("The title field is required." if field == 'title'
                       else f"The selected {field} is invalid.")
            raise FieldValidationError(field, message)

    if 'assigned_to' in data:
        _validate_assignee(data['assigned_to'])
        data['assigned_to_id'] = data.pop('assigned_to')

    old_status = task.status
    for key, value in data.items():
        setattr(task, key, value)
    task.save()

    if 'status' in data and data['status'] != old_status:
        action = NotificationAction.STATUS_UPDATED
    else:
        action = NotificationAction.UPDATED

    logger.info(f"Task {task.id} updated ({action})")
    TaskService.send_task_notification(task.id, action)
    return get_task(task.id)


def delete_task(task: Task) -> None:
    """Soft-delete a task."""
    task.soft_delete()
    logger.info(f"Task {task.id} soft-deleted")


def queue_bulk_update(actor: ActorDTO, task_ids: List[UUID], update_data: Dict[str, Any]) -> str:
    """
    Validate a bulk update request and queue the bulk update unit.

    Raises:
        FieldValidationError: If no update field is given or an id is unknown
    """
    update_data = {
        k: v for k, v in update_data.items()
        if k in BULK_UPDATABLE_FIELDS and v is not None
    }
    if not update_data:
        raise FieldValidationError('status', "No update data provided")

    unique_ids = list(dict.fromkeys(task_ids))
    found = set(Task.objects.filter(id__in=unique_ids).values_list('id', flat=True))
    missing = [task_id for task_id in unique_ids if task_id not in found]
    if missing:
        raise FieldValidationError('task_ids', "The selected task ids is invalid.")

    return TaskService.bulk_update_tasks(unique_ids, update_data, actor)
