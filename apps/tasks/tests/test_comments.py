"""
Tests for task comment endpoints.
"""
import json
from datetime import timedelta
from uuid import uuid4
from django.test import TestCase, Client

from apps.identity.jwt_auth import create_access_token
from apps.identity.models import User
from apps.tasks.models import Task, TaskComment


def auth(user):
    return {'HTTP_AUTHORIZATION': f'Bearer {create_access_token(user.id)}'}


class CommentAPITest(TestCase):

    def setUp(self):
        self.client = Client()
        self.owner = User.objects.create_user(email='owner@test.com', password='secret123', name='Owner')
        self.assignee = User.objects.create_user(email='assignee@test.com', password='secret123', name='Assignee')
        self.outsider = User.objects.create_user(email='outsider@test.com', password='secret123', name='Outsider')
        self.task = Task.objects.create(title='Plan sprint', created_by=self.owner, assigned_to=self.assignee)
        self.url = f'/api/tasks/{self.task.id}/comments'

    def send(self, method, url, payload, user):
        return getattr(self.client, method)(
            url, data=json.dumps(payload), content_type='application/json', **auth(user)
        )

    def test_add_comment(self):
        response = self.send('post', self.url, {'comment': 'Looks good'}, self.assignee)
        self.assertEqual(response.status_code, 201)

        data = response.json()
        self.assertEqual(data['message'], 'Comment added successfully')
        self.assertEqual(data['comment']['comment'], 'Looks good')
        self.assertEqual(data['comment']['user']['name'], 'Assignee')
        self.assertFalse(data['comment']['is_edited'])

    def test_comment_required(self):
        response = self.send('post', self.url, {'comment': '   '}, self.owner)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['errors']['comment'], ['The comment field is required.'])

    def test_comment_length_limit(self):
        response = self.send('post', self.url, {'comment': 'x' * 1001}, self.owner)
        self.assertEqual(response.status_code, 422)

        response = self.send('post', self.url, {'comment': 'x' * 1000}, self.owner)
        self.assertEqual(response.status_code, 201)

    def test_outsider_cannot_comment_or_list(self):
        response = self.send('post', self.url, {'comment': 'Hi'}, self.outsider)
        self.assertEqual(response.status_code, 403)

        response = self.client.get(self.url, **auth(self.outsider))
        self.assertEqual(response.status_code, 403)

    def test_list_newest_first(self):
        older = TaskComment.objects.create(task=self.task, user=self.owner, comment='Older')
        TaskComment.objects.create(task=self.task, user=self.assignee, comment='Newer')
        TaskComment.objects.filter(id=older.id).update(created_at=older.created_at - timedelta(hours=1))

        response = self.client.get(self.url, **auth(self.owner))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([c['comment'] for c in response.json()], ['Newer', 'Older'])

    def test_author_can_edit(self):
        comment = TaskComment.objects.create(task=self.task, user=self.assignee, comment='Draft')
        TaskComment.objects.filter(id=comment.id).update(created_at=comment.created_at - timedelta(minutes=5))

        response = self.send('put', f'/api/comments/{comment.id}', {'comment': 'Final'}, self.assignee)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['comment']['comment'], 'Final')
        self.assertTrue(response.json()['comment']['is_edited'])

    def test_edit_right_after_posting_is_marked_edited(self):
        comment = self.send('post', self.url, {'comment': 'Typo'}, self.assignee).json()['comment']

        response = self.send('put', f"/api/comments/{comment['id']}", {'comment': 'Fixed'}, self.assignee)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['comment']['is_edited'])

    def test_only_author_can_edit(self):
        comment = TaskComment.objects.create(task=self.task, user=self.assignee, comment='Mine')

        response = self.send('put', f'/api/comments/{comment.id}', {'comment': 'Changed'}, self.owner)
        self.assertEqual(response.status_code, 403)

        comment.refresh_from_db()
        self.assertEqual(comment.comment, 'Mine')

    def test_task_creator_can_delete_any_comment(self):
        comment = TaskComment.objects.create(task=self.task, user=self.assignee, comment='Remove me')

        response = self.client.delete(f'/api/comments/{comment.id}', **auth(self.owner))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(TaskComment.objects.filter(id=comment.id).exists())

    def test_assignee_cannot_delete_others_comment(self):
        comment = TaskComment.objects.create(task=self.task, user=self.owner, comment='Keep me')

        response = self.client.delete(f'/api/comments/{comment.id}', **auth(self.assignee))
        self.assertEqual(response.status_code, 403)

    def test_author_can_delete_own_comment(self):
        comment = TaskComment.objects.create(task=self.task, user=self.assignee, comment='Oops')

        response = self.client.delete(f'/api/comments/{comment.id}', **auth(self.assignee))
        self.assertEqual(response.status_code, 200)

    def test_unknown_comment(self):
        response = self.client.delete(f'/api/comments/{uuid4()}', **auth(self.owner))
        self.assertEqual(response.status_code, 404)
