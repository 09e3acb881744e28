"""
Test suite for Core module
Tests: authentication, staff accounts, settings, event log and error responses
"""
from django.test import TestCase, RequestFactory
from rest_framework import status
from rest_framework.test import APIClient
from atelier.core.models import EventLog, Setting
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.core.utils import get_correlation_id, log_event


class AuthTests(TestCase):
    """Test login and current user endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='marie', password='s3cretpass', role='seamstress')

    def test_login_returns_tokens_and_user(self):
        client = APIClient()
        response = client.post('/api/v1/auth/login/', {'username': 'marie', 'password': 's3cretpass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'marie')

    def test_login_wrong_password(self):
        client = APIClient()
        response = client.post('/api/v1/auth/login/', {'username': 'marie', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh(self):
        client = APIClient()
        tokens = client.post('/api/v1/auth/login/', {'username': 'marie', 'password': 's3cretpass'}, format='json').data
        response = client.post('/api/v1/auth/refresh/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_owner'])
        self.assertTrue(response.data['can_work_tasks'])

    def test_me_requires_auth(self):
        response = APIClient().get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserAPITests(TestCase):
    """Test staff account endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def test_create_user(self):
        data = {
            'username': 'julie',
            'email': 'julie@test.com',
            'password': 'Tailor!2024x',
            'password_confirm': 'Tailor!2024x',
            'role': 'seamstress',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'seamstress')

    def test_password_mismatch(self):
        data = {'username': 'julie', 'password': 'Tailor!2024x', 'password_confirm': 'other'}
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_role(self):
        TestDataFactory.create_user(role='clerk')
        response = self.client.get('/api/v1/users/?role=clerk')
        self.assertEqual(len(response.data), 1)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.owner.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_owner_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='clerk'))
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SettingAPITests(TestCase):
    """Test settings endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_owner_creates_setting(self):
        self.client.authenticate_user(TestDataFactory.create_owner())
        response = self.client.post('/api/v1/settings/', {'key': 'shop_name', 'value': 'Atelier'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_staff_reads_but_cannot_write(self):
        setting = Setting.objects.create(key='shop_name', value='Atelier')
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.data[0]['key'], 'shop_name')

        response = self.client.patch(f'/api/v1/settings/{setting.id}/', {'value': 'Other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class EventLogTests(TestCase):
    """Test the business event trail"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_log_event(self):
        event = log_event('order', 12, 'status_changed', {'from': 'pending', 'to': 'working'}, user=self.user)
        self.assertEqual(event.entity_id, '12')
        self.assertEqual(event.actor, self.user)

    def test_log_event_skips_missing_fields(self):
        self.assertIsNone(log_event(None, 1, 'created'))
        self.assertEqual(EventLog.objects.count(), 0)

    def test_log_event_never_raises(self):
        self.assertIsNone(log_event('order', 1, 'created', {'bad': object()}))

    def test_filters(self):
        log_event('order', 1, 'status_changed', correlation_id='abc')
        log_event('order', 2, 'intake_created')
        log_event('client', 1, 'created')

        response = self.client.get('/api/v1/event-logs/?entity=order')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/event-logs/?entity=order&entity_id=1')
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/event-logs/?correlation_id=abc')
        self.assertEqual(response.data[0]['action'], 'status_changed')
        response = self.client.get('/api/v1/event-logs/?limit=1')
        self.assertEqual(len(response.data), 1)


class ErrorResponseTests(TestCase):
    """Test the common error body"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_not_found_body(self):
        response = self.client.get('/api/v1/orders/99999/', HTTP_X_CORRELATION_ID='req-123')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['correlation_id'], 'req-123')
        self.assertEqual(response.data['status_code'], 404)
        self.assertEqual(response.data['path'], '/api/v1/orders/99999/')
        self.assertEqual(response['X-Correlation-ID'], 'req-123')
        for key in ('error', 'message', 'timestamp'):
            self.assertIn(key, response.data)

    def test_generated_correlation_id(self):
        response = APIClient().get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'NotAuthenticated')
        self.assertTrue(response.data['correlation_id'])

    def test_correlation_id_is_stable_per_request(self):
        request = RequestFactory().get('/')
        self.assertEqual(get_correlation_id(request), get_correlation_id(request))
        request = RequestFactory().get('/', HTTP_X_CORRELATION_ID='given')
        self.assertEqual(get_correlation_id(request), 'given')
