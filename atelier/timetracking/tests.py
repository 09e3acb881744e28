"""
Test suite for time tracking
Tests: duration formatting, sessions, stats and history
"""
from datetime import datetime, timedelta

from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.timetracking.models import TimeEntry
from atelier.timetracking.utils import format_duration, minutes_between, period_start


class DurationTests(SimpleTestCase):
    """Test duration helpers"""

    def test_format_duration(self):
        self.assertEqual(format_duration(0), '0m')
        self.assertEqual(format_duration(45), '45m')
        self.assertEqual(format_duration(60), '1h')
        self.assertEqual(format_duration(90), '1h 30m')
        self.assertEqual(format_duration(125), '2h 5m')

    def test_minutes_between_rounds_half_up(self):
        start = timezone.now()
        self.assertEqual(minutes_between(start, start + timedelta(seconds=89)), 1)
        self.assertEqual(minutes_between(start, start + timedelta(seconds=90)), 2)
        self.assertEqual(minutes_between(start, start - timedelta(minutes=5)), 0)

    def test_period_start(self):
        now = timezone.make_aware(datetime(2024, 3, 15, 14, 30))
        self.assertEqual(timezone.localtime(period_start('today', now)).hour, 0)
        self.assertEqual(period_start('week', now), now - timedelta(days=7))
        self.assertEqual(timezone.localtime(period_start('month', now)).day, 1)
        self.assertIsNone(period_start('all', now))


class TimeEntryAPITests(TestCase):
    """Test time tracking endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order(task_stages=['working'])
        self.task = self.order.tasks.first()

    def _completed_entry(self, minutes, user=None, start_time=None):
        start_time = start_time or timezone.now()
        return TimeEntry.objects.create(
            task=self.task,
            user=user or self.user,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=minutes),
            duration_minutes=minutes,
            is_active=False,
        )

    def test_start_and_stop(self):
        response = self.client.post('/api/v1/time-tracking/start/', {'task_id': self.task.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_active'])

        response = self.client.post('/api/v1/time-tracking/stop/', {'notes': 'Hemmed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.assertEqual(response.data['duration_minutes'], 0)
        self.assertEqual(response.data['notes'], 'Hemmed')

    def test_one_active_session_per_user(self):
        self.client.post('/api/v1/time-tracking/start/', {'task_id': self.task.id}, format='json')
        response = self.client.post('/api/v1/time-tracking/start/', {'task_id': self.task.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_start_unknown_task(self):
        response = self.client.post('/api/v1/time-tracking/start/', {'task_id': 99999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stop_without_session(self):
        response = self.client.post('/api/v1/time-tracking/stop/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_active(self):
        response = self.client.get('/api/v1/time-tracking/active/')
        self.assertIsNone(response.data['active'])

        TimeEntry.objects.create(
            task=self.task, user=self.user, start_time=timezone.now() - timedelta(minutes=90), is_active=True
        )
        response = self.client.get('/api/v1/time-tracking/active/')
        self.assertEqual(response.data['current_minutes'], 90)
        self.assertEqual(response.data['current_display'], '1h 30m')

    def test_stats(self):
        self._completed_entry(30)
        self._completed_entry(45)
        self._completed_entry(120, start_time=timezone.now() - timedelta(days=400))
        TimeEntry.objects.create(task=self.task, user=self.user, start_time=timezone.now(), is_active=True)

        response = self.client.get('/api/v1/time-tracking/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_time_minutes'], 195)
        self.assertEqual(response.data['total_sessions'], 3)
        self.assertEqual(response.data['average_session_minutes'], 65)
        self.assertEqual(response.data['total_time_display'], '3h 15m')

        response = self.client.get('/api/v1/time-tracking/stats/?period=week')
        self.assertEqual(response.data['total_time_minutes'], 75)
        self.assertEqual(response.data['average_session_minutes'], 38)

    def test_stats_bad_period(self):
        response = self.client.get('/api/v1/time-tracking/stats/?period=year')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_user_stats_owner_only(self):
        other = TestDataFactory.create_user()
        self._completed_entry(20, user=other)
        response = self.client.get(f'/api/v1/time-tracking/stats/?user_id={other.id}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_owner())
        response = self.client.get(f'/api/v1/time-tracking/stats/?user_id={other.id}')
        self.assertEqual(response.data['total_time_minutes'], 20)

    def test_history(self):
        self._completed_entry(30)
        self._completed_entry(15, start_time=timezone.now() - timedelta(days=10))
        response = self.client.get('/api/v1/time-tracking/history/')
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['duration_display'], '30m')

        since = (timezone.localdate() - timedelta(days=2)).isoformat()
        response = self.client.get(f'/api/v1/time-tracking/history/?date_from={since}')
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/v1/time-tracking/history/?limit=1')
        self.assertEqual(len(response.data), 1)

    def test_history_bad_limit(self):
        self._completed_entry(30)
        self._completed_entry(15)
        for limit in ('-1', '0'):
            response = self.client.get(f'/api/v1/time-tracking/history/?limit={limit}')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/v1/time-tracking/history/?limit=abc')
        self.assertEqual(len(response.data), 2)
