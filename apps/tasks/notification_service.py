"""
Email notifications about task changes.
Mails are rendered from templates and sent through django.core.mail.
"""
import logging
from typing import List

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from .models import Task

logger = logging.getLogger(__name__)

SUBJECTS = {
    'created': "New Task Assigned: {title}",
    'updated': "Task Updated: {title}",
    'status_updated': "Task Status Changed: {title}",
    'due_date_updated': "Task Due Date Updated: {title}",
}
DEFAULT_SUBJECT = "Task Notification: {title}"

MESSAGES = {
    'created': "A new task has been created and you are involved in it.",
    'updated': "A task you are involved in has been updated.",
    'status_updated': "The status of a task you are involved in has changed.",
    'due_date_updated': "The due date of a task you are involved in has changed.",
}
DEFAULT_MESSAGE = "There is an update on a task you are involved in."


def get_subject(task: Task, action: str) -> str:
    return SUBJECTS.get(action, DEFAULT_SUBJECT).format(title=task.title)


def get_task_url(task: Task) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/tasks/{task.id}"


def get_recipients(task: Task) -> List:
    """Creator, plus the assignee when it is a different user."""
    recipients = [task.created_by]
    if task.assigned_to_id and task.assigned_to_id != task.created_by_id:
        recipients.append(task.assigned_to)
    return recipients


def send_notification(task: Task, action: str, recipient) -> None:
    """Render and send one notification mail."""
    subject = get_subject(task, action)
    context = {
        'subject': subject,
        'message': MESSAGES.get(action, DEFAULT_MESSAGE),
        'task': task,
        'recipient': recipient,
        'action': action,
        'task_url': get_task_url(task),
    }

    email = EmailMultiAlternatives(
        subject=subject,
        body=render_to_string('tasks/emails/task_notification.txt', context),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[recipient.email],
    )
    email.attach_alternative(
        render_to_string('tasks/emails/task_notification.html', context),
        'text/html',
    )
    email.send()
