"""
Integration tests for task API endpoints.
Tests listing, CRUD, access rules and bulk updates.
"""
import json
from datetime import timedelta
from uuid import uuid4
from django.core import mail
from django.test import TestCase, Client
from django.utils import timezone

from apps.identity.jwt_auth import create_access_token
from apps.identity.models import User
from apps.tasks.models import Task, TaskComment, TaskAttachment, TaskStatus, TaskPriority


def auth(user):
    return {'HTTP_AUTHORIZATION': f'Bearer {create_access_token(user.id)}'}


class TaskAPITestBase(TestCase):

    def setUp(self):
        self.client = Client()
        self.owner = User.objects.create_user(email='owner@test.com', password='secret123', name='Owner')
        self.assignee = User.objects.create_user(email='assignee@test.com', password='secret123', name='Assignee')
        self.outsider = User.objects.create_user(email='outsider@test.com', password='secret123', name='Outsider')

        self.task = Task.objects.create(
            title='Write docs',
            description='Document the public API',
            created_by=self.owner,
            assigned_to=self.assignee,
        )

    def post_json(self, url, payload, user):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json', **auth(user))

    def put_json(self, url, payload, user):
        return self.client.put(url, data=json.dumps(payload), content_type='application/json', **auth(user))


class TaskListTest(TaskAPITestBase):
    """Test GET /tasks filters, search, sort and pagination."""

    def test_list_requires_auth(self):
        response = self.client.get('/api/tasks')
        self.assertEqual(response.status_code, 401)

    def test_list_only_own_or_assigned(self):
        Task.objects.create(title='Private', created_by=self.outsider)

        response = self.client.get('/api/tasks', **auth(self.assignee))
        self.assertEqual(response.status_code, 200)

        titles = [t['title'] for t in response.json()['data']]
        self.assertEqual(titles, ['Write docs'])

    def test_list_embeds_people_and_counts(self):
        TaskComment.objects.create(task=self.task, user=self.owner, comment='First')
        TaskComment.objects.create(task=self.task, user=self.assignee, comment='Second')
        TaskAttachment.objects.create(
            task=self.task, file_name='a.txt', file_path='attachments/1_a.txt',
            file_size=3, mime_type='text/plain', uploaded_by=self.owner,
        )

        row = self.client.get('/api/tasks', **auth(self.owner)).json()['data'][0]
        self.assertEqual(row['user']['name'], 'Owner')
        self.assertEqual(row['assignee']['name'], 'Assignee')
        self.assertEqual(row['comments_count'], 2)
        self.assertEqual(row['attachments_count'], 1)

    def test_pagination(self):
        for i in range(11):
            Task.objects.create(title=f'Task {i:02d}', created_by=self.owner)

        data = self.client.get('/api/tasks', **auth(self.owner)).json()
        self.assertEqual(data['total'], 12)
        self.assertEqual(data['per_page'], 10)
        self.assertEqual(data['last_page'], 2)
        self.assertEqual(data['current_page'], 1)
        self.assertEqual(len(data['data']), 10)

        data = self.client.get('/api/tasks?page=2', **auth(self.owner)).json()
        self.assertEqual(data['current_page'], 2)
        self.assertEqual(len(data['data']), 2)

    def test_filter_by_status_and_priority(self):
        Task.objects.create(title='Done', created_by=self.owner,
                            status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH)
        Task.objects.create(title='Done low', created_by=self.owner,
                            status=TaskStatus.COMPLETED, priority=TaskPriority.LOW)

        data = self.client.get('/api/tasks?status=completed', **auth(self.owner)).json()
        self.assertEqual({t['title'] for t in data['data']}, {'Done', 'Done low'})

        data = self.client.get('/api/tasks?status=completed&priority=high', **auth(self.owner)).json()
        self.assertEqual([t['title'] for t in data['data']], ['Done'])

        data = self.client.get('/api/tasks?status=all&priority=all', **auth(self.owner)).json()
        self.assertEqual(data['total'], 3)

    def test_search_title_or_description(self):
        Task.objects.create(title='Quarterly numbers', description='Prepare REPORT', created_by=self.owner)
        Task.objects.create(title='Report template', created_by=self.owner)

        data = self.client.get('/api/tasks?search=report', **auth(self.owner)).json()
        self.assertEqual({t['title'] for t in data['data']}, {'Quarterly numbers', 'Report template'})

    def test_sort_by_title(self):
        Task.objects.create(title='Alpha', created_by=self.owner)
        Task.objects.create(title='Zulu', created_by=self.owner)

        data = self.client.get('/api/tasks?sort_field=title&sort_direction=asc', **auth(self.owner)).json()
        self.assertEqual([t['title'] for t in data['data']], ['Alpha', 'Write docs', 'Zulu'])

        data = self.client.get('/api/tasks?sort_field=title&sort_direction=desc', **auth(self.owner)).json()
        self.assertEqual([t['title'] for t in data['data']], ['Zulu', 'Write docs', 'Alpha'])

    def test_unknown_sort_field_falls_back(self):
        response = self.client.get('/api/tasks?sort_field=password', **auth(self.owner))
        self.assertEqual(response.status_code, 200)

    def test_soft_deleted_hidden(self):
        self.task.soft_delete()
        data = self.client.get('/api/tasks', **auth(self.owner)).json()
        self.assertEqual(data['total'], 0)


class TaskCreateTest(TaskAPITestBase):
    """Test POST /tasks."""

    def test_create_with_defaults(self):
        response = self.post_json('/api/tasks', {'title': 'New task'}, self.owner)
        self.assertEqual(response.status_code, 201)

        data = response.json()
        self.assertEqual(data['message'], 'Task created successfully')
        self.assertEqual(data['task']['status'], 'pending')
        self.assertEqual(data['task']['priority'], 'medium')
        self.assertEqual(data['task']['user_id'], str(self.owner.id))
        self.assertIsNone(data['task']['assignee'])

    def test_create_notifies_creator_and_assignee(self):
        response = self.post_json(
            '/api/tasks',
            {'title': 'Ship it', 'assigned_to': str(self.assignee.id), 'priority': 'high'},
            self.owner,
        )
        self.assertEqual(response.status_code, 201)

        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual({m.to[0] for m in mail.outbox}, {'owner@test.com', 'assignee@test.com'})
        self.assertEqual(mail.outbox[0].subject, 'New Task Assigned: Ship it')

    def test_title_required(self):
        response = self.post_json('/api/tasks', {'description': 'no title'}, self.owner)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['errors']['title'], ['The title field is required.'])

    def test_invalid_status(self):
        response = self.post_json('/api/tasks', {'title': 'x', 'status': 'done'}, self.owner)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['errors']['status'], ['The selected status is invalid.'])

    def test_due_date_in_past_rejected(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        response = self.post_json('/api/tasks', {'title': 'x', 'due_date': yesterday.isoformat()}, self.owner)
        self.assertEqual(response.status_code, 422)
        self.assertIn('due_date', response.json()['errors'])

    def test_due_date_today_allowed(self):
        today = timezone.localdate()
        response = self.post_json('/api/tasks', {'title': 'x', 'due_date': today.isoformat()}, self.owner)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['task']['due_date'], today.isoformat())

    def test_unknown_assignee_rejected(self):
        response = self.post_json('/api/tasks', {'title': 'x', 'assigned_to': str(uuid4())}, self.owner)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['errors']['assigned_to'], ['The selected assigned to is invalid.'])


class TaskDetailTest(TaskAPITestBase):
    """Test GET/PUT/DELETE /tasks/{id}."""

    def test_detail_for_creator_and_assignee(self):
        TaskComment.objects.create(task=self.task, user=self.assignee, comment='On it')

        for user in (self.owner, self.assignee):
            response = self.client.get(f'/api/tasks/{self.task.id}', **auth(user))
            self.assertEqual(response.status_code, 200)
            data = response.json()
            self.assertEqual(data['title'], 'Write docs')
            self.assertEqual(len(data['comments']), 1)
            self.assertEqual(data['comments'][0]['user']['name'], 'Assignee')
            self.assertEqual(data['attachments'], [])

    def test_detail_forbidden_for_outsider(self):
        response = self.client.get(f'/api/tasks/{self.task.id}', **auth(self.outsider))
        self.assertEqual(response.status_code, 403)

    def test_detail_missing(self):
        response = self.client.get(f'/api/tasks/{uuid4()}', **auth(self.owner))
        self.assertEqual(response.status_code, 404)

    def test_update_status_sends_status_notification(self):
        response = self.put_json(f'/api/tasks/{self.task.id}', {'status': 'in_progress'}, self.assignee)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['task']['status'], 'in_progress')

        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(mail.outbox[0].subject, 'Task Status Changed: Write docs')

    def test_update_same_status_sends_updated(self):
        response = self.put_json(f'/api/tasks/{self.task.id}', {'status': 'pending'}, self.owner)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(mail.outbox[0].subject, 'Task Updated: Write docs')

    def test_update_only_changes_supplied_fields(self):
        response = self.put_json(f'/api/tasks/{self.task.id}', {'title': 'Write better docs'}, self.owner)
        self.assertEqual(response.status_code, 200)

        self.task.refresh_from_db()
        self.assertEqual(self.task.title, 'Write better docs')
        self.assertEqual(self.task.description, 'Document the public API')
        self.assertEqual(self.task.assigned_to_id, self.assignee.id)
        self.assertEqual(mail.outbox[0].subject, 'Task Updated: Write better docs')

    def test_update_can_unassign(self):
        response = self.put_json(f'/api/tasks/{self.task.id}', {'assigned_to': None}, self.owner)
        self.assertEqual(response.status_code, 200)

        self.task.refresh_from_db()
        self.assertIsNone(self.task.assigned_to_id)

    def test_update_forbidden_for_outsider(self):
        response = self.put_json(f'/api/tasks/{self.task.id}', {'title': 'Hijack'}, self.outsider)
        self.assertEqual(response.status_code, 403)

    def test_update_null_title_rejected(self):
        response = self.put_json(f'/api/tasks/{self.task.id}', {'title': None}, self.owner)
        self.assertEqual(response.status_code, 422)
        self.assertIn('title', response.json()['errors'])

    def test_delete_by_creator_soft_deletes(self):
        response = self.client.delete(f'/api/tasks/{self.task.id}', **auth(self.owner))
        self.assertEqual(response.status_code, 200)

        self.assertFalse(Task.objects.filter(id=self.task.id).exists())
        self.assertIsNotNone(Task.all_objects.get(id=self.task.id).deleted_at)

        response = self.client.get(f'/api/tasks/{self.task.id}', **auth(self.owner))
        self.assertEqual(response.status_code, 404)

    def test_delete_by_assignee_forbidden(self):
        response = self.client.delete(f'/api/tasks/{self.task.id}', **auth(self.assignee))
        self.assertEqual(response.status_code, 403)
        self.assertTrue(Task.objects.filter(id=self.task.id).exists())


class BulkUpdateTest(TaskAPITestBase):
    """Test POST /tasks/bulk-update."""

    def test_bulk_update_applies_to_permitted_tasks(self):
        second = Task.objects.create(title='Review docs', created_by=self.assignee)
        foreign = Task.objects.create(title='Not mine', created_by=self.outsider)

        response = self.post_json(
            '/api/tasks/bulk-update',
            {'task_ids': [str(self.task.id), str(second.id), str(foreign.id)], 'status': 'completed'},
            self.assignee,
        )
        self.assertEqual(response.status_code, 200)

        self.task.refresh_from_db()
        second.refresh_from_db()
        foreign.refresh_from_db()
        self.assertEqual(self.task.status, TaskStatus.COMPLETED)
        self.assertEqual(second.status, TaskStatus.COMPLETED)
        self.assertEqual(foreign.status, TaskStatus.PENDING)

        # owner + assignee for the first task, assignee alone for the second
        self.assertEqual(len(mail.outbox), 3)
        self.assertTrue(all(m.subject.startswith('Task Updated: ') for m in mail.outbox))

    def test_bulk_update_priority_only(self):
        response = self.post_json(
            '/api/tasks/bulk-update',
            {'task_ids': [str(self.task.id)], 'priority': 'high'},
            self.owner,
        )
        self.assertEqual(response.status_code, 200)

        self.task.refresh_from_db()
        self.assertEqual(self.task.priority, TaskPriority.HIGH)
        self.assertEqual(self.task.status, TaskStatus.PENDING)

    def test_bulk_update_requires_a_field(self):
        response = self.post_json('/api/tasks/bulk-update', {'task_ids': [str(self.task.id)]}, self.owner)
        self.assertEqual(response.status_code, 422)

    def test_bulk_update_requires_ids(self):
        response = self.post_json('/api/tasks/bulk-update', {'task_ids': [], 'status': 'completed'}, self.owner)
        self.assertEqual(response.status_code, 422)
        self.assertIn('task_ids', response.json()['errors'])

    def test_bulk_update_unknown_id(self):
        response = self.post_json(
            '/api/tasks/bulk-update',
            {'task_ids': [str(self.task.id), str(uuid4())], 'status': 'completed'},
            self.owner,
        )
        self.assertEqual(response.status_code, 422)
        self.assertIn('task_ids', response.json()['errors'])

        self.task.refresh_from_db()
        self.assertEqual(self.task.status, TaskStatus.PENDING)

    def test_bulk_update_invalid_status(self):
        response = self.post_json(
            '/api/tasks/bulk-update',
            {'task_ids': [str(self.task.id)], 'status': 'archived'},
            self.owner,
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['errors']['status'], ['The selected status is invalid.'])
