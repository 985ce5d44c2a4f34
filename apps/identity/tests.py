"""
Tests for identity endpoints: register, login, logout, profile and users.
"""
import json
from datetime import timedelta
from io import StringIO
from django.core.management import call_command
from django.test import TestCase, Client
from django.utils import timezone

from .jwt_auth import create_access_token, parse_access_token
from .models import User, RevokedToken


class RegisterTest(TestCase):
    """Test account registration."""

    def setUp(self):
        self.client = Client()

    def _register(self, **overrides):
        payload = {
            'name': 'Alice Example',
            'email': 'alice@example.com',
            'password': 'secret123',
            'password_confirmation': 'secret123',
        }
        payload.update(overrides)
        return self.client.post(
            '/api/auth/register',
            data=json.dumps(payload),
            content_type='application/json',
        )

    def test_register_returns_user_and_token(self):
        response = self._register()
        self.assertEqual(response.status_code, 201)

        data = response.json()
        self.assertEqual(data['message'], 'User registered successfully')
        self.assertEqual(data['user']['email'], 'alice@example.com')
        self.assertEqual(data['user']['name'], 'Alice Example')
        self.assertIsNotNone(parse_access_token(data['token']))
        self.assertTrue(User.objects.filter(email='alice@example.com').exists())

    def test_register_lowercases_email(self):
        response = self._register(email='Alice@Example.COM')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['user']['email'], 'alice@example.com')

    def test_duplicate_email_rejected(self):
        User.objects.create_user(email='alice@example.com', password='secret123', name='Existing')

        response = self._register()
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['errors']['email'], ["The email has already been taken."])

    def test_password_confirmation_must_match(self):
        response = self._register(password_confirmation='different1')
        self.assertEqual(response.status_code, 422)
        self.assertIn('password_confirmation', response.json()['errors'])

    def test_short_password_rejected(self):
        response = self._register(password='short', password_confirmation='short')
        self.assertEqual(response.status_code, 422)

        data = response.json()
        self.assertEqual(data['detail'], 'The given data was invalid.')
        self.assertEqual(data['errors']['password'], ["The password must be at least 8 characters."])

    def test_invalid_email_rejected(self):
        response = self._register(email='not-an-email')
        self.assertEqual(response.status_code, 422)
        self.assertIn('email', response.json()['errors'])

    def test_missing_name_rejected(self):
        payload = {
            'email': 'alice@example.com',
            'password': 'secret123',
            'password_confirmation': 'secret123',
        }
        response = self.client.post(
            '/api/auth/register',
            data=json.dumps(payload),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['errors']['name'], ["The name field is required."])


class LoginLogoutTest(TestCase):
    """Test login, logout and token revocation."""

    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_user(
            email='bob@example.com',
            password='secret123',
            name='Bob',
        )

    def _login(self, email='bob@example.com', password='secret123'):
        return self.client.post(
            '/api/auth/login',
            data=json.dumps({'email': email, 'password': password}),
            content_type='application/json',
        )

    def test_login_success(self):
        response = self._login()
        self.assertEqual(response.status_code, 200)

        data = response.json()
        self.assertEqual(data['message'], 'Login successful')
        self.assertEqual(data['user']['id'], str(self.user.id))
        self.assertTrue(data['token'])

    def test_login_wrong_password(self):
        response = self._login(password='wrong-password')
        self.assertEqual(response.status_code, 401)

    def test_login_unknown_email(self):
        response = self._login(email='nobody@example.com')
        self.assertEqual(response.status_code, 401)

    def test_login_inactive_user(self):
        self.user.is_active = False
        self.user.save()

        response = self._login()
        self.assertEqual(response.status_code, 401)

    def test_me_requires_auth(self):
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, 401)

    def test_me_with_token(self):
        token = self._login().json()['token']
        response = self.client.get('/api/auth/me', HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['user']['email'], 'bob@example.com')

    def test_garbage_token_rejected(self):
        response = self.client.get('/api/auth/me', HTTP_AUTHORIZATION='Bearer not-a-token')
        self.assertEqual(response.status_code, 401)

    def test_logout_revokes_token(self):
        token = self._login().json()['token']
        header = f'Bearer {token}'

        response = self.client.post('/api/auth/logout', HTTP_AUTHORIZATION=header)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['message'], 'Logged out successfully')
        self.assertEqual(RevokedToken.objects.filter(user=self.user).count(), 1)

        response = self.client.get('/api/auth/me', HTTP_AUTHORIZATION=header)
        self.assertEqual(response.status_code, 401)

    def test_logout_leaves_other_tokens_valid(self):
        first = create_access_token(self.user.id)
        second = create_access_token(self.user.id)

        self.client.post('/api/auth/logout', HTTP_AUTHORIZATION=f'Bearer {first}')

        response = self.client.get('/api/auth/me', HTTP_AUTHORIZATION=f'Bearer {second}')
        self.assertEqual(response.status_code, 200)

    def test_logout_purges_expired_revocations(self):
        now = timezone.now()
        RevokedToken.objects.create(jti='stale', user=self.user, expires_at=now - timedelta(minutes=1))
        RevokedToken.objects.create(jti='live', user=self.user, expires_at=now + timedelta(hours=1))

        token = create_access_token(self.user.id)
        self.client.post('/api/auth/logout', HTTP_AUTHORIZATION=f'Bearer {token}')

        self.assertFalse(RevokedToken.objects.filter(jti='stale').exists())
        self.assertTrue(RevokedToken.objects.filter(jti='live').exists())
        self.assertEqual(RevokedToken.objects.count(), 2)

    def test_purge_command(self):
        now = timezone.now()
        RevokedToken.objects.create(jti='stale', user=self.user, expires_at=now - timedelta(minutes=1))
        RevokedToken.objects.create(jti='live', user=self.user, expires_at=now + timedelta(hours=1))

        out = StringIO()
        call_command('purge_revoked_tokens', stdout=out)

        self.assertIn('Purged 1 expired token revocations', out.getvalue())
        self.assertEqual(list(RevokedToken.objects.values_list('jti', flat=True)), ['live'])


class UserListTest(TestCase):
    """Test the assignee candidate list."""

    def setUp(self):
        self.client = Client()
        self.me = User.objects.create_user(email='me@example.com', password='secret123', name='Me')
        self.zed = User.objects.create_user(email='zed@example.com', password='secret123', name='Zed')
        self.amy = User.objects.create_user(email='amy@example.com', password='secret123', name='Amy')
        self.header = f'Bearer {create_access_token(self.me.id)}'

    def test_lists_everyone_but_caller_by_name(self):
        response = self.client.get('/api/users', HTTP_AUTHORIZATION=self.header)
        self.assertEqual(response.status_code, 200)

        data = response.json()
        self.assertEqual([u['name'] for u in data], ['Amy', 'Zed'])
        self.assertEqual(set(data[0].keys()), {'id', 'name', 'email'})

    def test_requires_auth(self):
        response = self.client.get('/api/users')
        self.assertEqual(response.status_code, 401)
