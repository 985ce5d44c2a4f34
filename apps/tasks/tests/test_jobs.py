"""
Tests for the notification and bulk update units, and the in-process
task backend that runs them.
"""
from unittest import mock
from uuid import uuid4
from django.core import mail
from django.test import TestCase, override_settings

from apps.core.backends.local_backend import LocalTaskService
from apps.core.dtos import ActorDTO
from apps.core.task_service import TaskService
from apps.identity.models import User
from apps.tasks import jobs
from apps.tasks.models import Task, TaskStatus, TaskPriority


class NotificationJobTest(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@test.com', password='secret123', name='Owner')
        self.assignee = User.objects.create_user(email='assignee@test.com', password='secret123', name='Assignee')
        self.task = Task.objects.create(title='Deploy', created_by=self.owner, assigned_to=self.assignee)

    def test_mails_creator_and_assignee(self):
        sent = jobs.send_task_notification(task_id=str(self.task.id), action='created')
        self.assertEqual(sent, 2)
        self.assertEqual([m.to for m in mail.outbox], [['owner@test.com'], ['assignee@test.com']])
        self.assertEqual(mail.outbox[0].subject, 'New Task Assigned: Deploy')

    def test_self_assigned_gets_one_mail(self):
        self.task.assigned_to = self.owner
        self.task.save()

        sent = jobs.send_task_notification(task_id=str(self.task.id), action='updated')
        self.assertEqual(sent, 1)

    def test_subjects_per_action(self):
        expected = {
            'updated': 'Task Updated: Deploy',
            'status_updated': 'Task Status Changed: Deploy',
            'due_date_updated': 'Task Due Date Updated: Deploy',
            'archived': 'Task Notification: Deploy',
        }
        for action, subject in expected.items():
            mail.outbox = []
            jobs.send_task_notification(task_id=str(self.task.id), action=action)
            self.assertEqual(mail.outbox[0].subject, subject)

    @override_settings(FRONTEND_URL='https://tasks.example.com/')
    def test_mail_links_to_task(self):
        jobs.send_task_notification(task_id=str(self.task.id), action='created')

        message = mail.outbox[0]
        link = f'https://tasks.example.com/tasks/{self.task.id}'
        self.assertIn(link, message.body)
        html, mime = message.alternatives[0]
        self.assertEqual(mime, 'text/html')
        self.assertIn(link, html)

    def test_soft_deleted_task_still_notified(self):
        self.task.soft_delete()
        sent = jobs.send_task_notification(task_id=str(self.task.id), action='updated')
        self.assertEqual(sent, 2)

    def test_missing_task_sends_nothing(self):
        sent = jobs.send_task_notification(task_id=str(uuid4()), action='created')
        self.assertEqual(sent, 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_failed_recipient_is_skipped(self):
        with mock.patch(
            'apps.tasks.notification_service.send_notification',
            side_effect=[ConnectionError('smtp down'), None],
        ):
            sent = jobs.send_task_notification(task_id=str(self.task.id), action='created')
        self.assertEqual(sent, 1)


class BulkUpdateJobTest(TestCase):

    def setUp(self):
        self.actor = User.objects.create_user(email='actor@test.com', password='secret123', name='Actor')
        self.other = User.objects.create_user(email='other@test.com', password='secret123', name='Other')
        self.mine = Task.objects.create(title='Mine', created_by=self.actor)
        self.assigned = Task.objects.create(title='Assigned', created_by=self.other, assigned_to=self.actor)
        self.foreign = Task.objects.create(title='Foreign', created_by=self.other)

    def _run(self, task_ids, update_data):
        return jobs.bulk_update_tasks(
            task_ids=[str(t) for t in task_ids],
            update_data=update_data,
            actor=ActorDTO.from_user(self.actor).to_payload(),
        )

    def test_updates_only_permitted_tasks(self):
        count = self._run([self.mine.id, self.assigned.id, self.foreign.id], {'status': 'completed'})
        self.assertEqual(count, 2)

        self.assertEqual(Task.objects.get(id=self.mine.id).status, TaskStatus.COMPLETED)
        self.assertEqual(Task.objects.get(id=self.assigned.id).status, TaskStatus.COMPLETED)
        self.assertEqual(Task.objects.get(id=self.foreign.id).status, TaskStatus.PENDING)

    def test_missing_and_deleted_tasks_skipped(self):
        self.mine.soft_delete()
        count = self._run([self.mine.id, uuid4(), self.assigned.id], {'priority': 'high'})
        self.assertEqual(count, 1)
        self.assertEqual(Task.objects.get(id=self.assigned.id).priority, TaskPriority.HIGH)

    def test_ignores_other_fields(self):
        self._run([self.mine.id], {'priority': 'low', 'title': 'Renamed'})

        self.mine.refresh_from_db()
        self.assertEqual(self.mine.title, 'Mine')
        self.assertEqual(self.mine.priority, TaskPriority.LOW)

    def test_uses_captured_actor_not_current_assignment(self):
        # The captured identity is what is checked, even if it is no longer a participant
        Task.objects.filter(id=self.assigned.id).update(assigned_to=self.other)

        count = self._run([self.assigned.id], {'status': 'completed'})
        self.assertEqual(count, 0)

    def test_each_updated_task_is_notified(self):
        self._run([self.mine.id, self.assigned.id], {'status': 'in_progress'})
        subjects = sorted(m.subject for m in mail.outbox)
        self.assertEqual(subjects, ['Task Updated: Assigned', 'Task Updated: Assigned', 'Task Updated: Mine'])


@override_settings(TASK_BACKEND='local', TASK_MAX_ATTEMPTS=3)
class LocalBackendTest(TestCase):
    """Retries and terminal failure hooks of the in-process backend."""

    def test_retries_then_runs_failure_hook(self):
        with mock.patch('apps.tasks.jobs.send_task_notification', side_effect=RuntimeError('boom')) as unit, \
                mock.patch('apps.tasks.jobs.notification_failed') as hook:
            LocalTaskService().send_task('send_task_notification', {'task_id': 'abc', 'action': 'created'})

        self.assertEqual(unit.call_count, 3)
        hook.assert_called_once()
        exc = hook.call_args.args[0]
        self.assertIsInstance(exc, RuntimeError)
        self.assertEqual(hook.call_args.kwargs, {'task_id': 'abc', 'action': 'created'})

    def test_success_after_retry_skips_hook(self):
        with mock.patch('apps.tasks.jobs.send_task_notification', side_effect=[RuntimeError('flaky'), 2]) as unit, \
                mock.patch('apps.tasks.jobs.notification_failed') as hook:
            LocalTaskService().send_task('send_task_notification', {'task_id': 'abc', 'action': 'created'})

        self.assertEqual(unit.call_count, 2)
        hook.assert_not_called()

    def test_bulk_payload_carries_actor(self):
        actor = ActorDTO(id=uuid4(), name='Actor', email='actor@test.com')
        task_id = uuid4()

        with mock.patch('apps.tasks.jobs.bulk_update_tasks', return_value=0) as unit:
            TaskService.bulk_update_tasks([task_id], {'status': 'completed'}, actor)

        unit.assert_called_once_with(
            task_ids=[str(task_id)],
            update_data={'status': 'completed'},
            actor={'id': str(actor.id), 'name': 'Actor', 'email': 'actor@test.com'},
        )

    def test_unknown_unit_is_ignored(self):
        task_id = LocalTaskService().send_task('no_such_unit', {})
        self.assertTrue(task_id)
