"""
Test suite for integrations
Tests: inbound webhooks (order ready, payment) and outbound SMS/CRM calls
"""
from unittest.mock import patch, MagicMock

import requests
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient
from atelier.core.models import EventLog
from atelier.core.test_utils import TestDataFactory
from atelier.integrations.notifications import (
    send_sms_notification, sync_client_contact, upsert_crm_contact,
)
from atelier.orders.models import Payment
from atelier.orders.stage_transitions import OrderStatus


@override_settings(WEBHOOK_SECRET='s3cret')
class WebhookAuthTests(TestCase):
    """Test webhook authentication"""

    def test_missing_token(self):
        response = APIClient().post('/api/v1/webhooks/order-ready/', {'order_id': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('correlation_id', response.data)

    def test_wrong_token(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION='Bearer nope')
        response = client.post('/api/v1/webhooks/payment/', {'order_id': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    @override_settings(WEBHOOK_SECRET='')
    def test_unconfigured_secret_rejects(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION='Bearer ')
        response = client.post('/api/v1/webhooks/order-ready/', {'order_id': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


@override_settings(WEBHOOK_SECRET='s3cret', SMS_WEBHOOK_URL='', CRM_WEBHOOK_URL='')
class OrderReadyWebhookTests(TestCase):
    """Test the order ready webhook"""

    def setUp(self):
        self.client = APIClient()
        self.client.credentials(HTTP_AUTHORIZATION='Bearer s3cret')

    def test_marks_ready(self):
        order = TestDataFactory.create_order(status=OrderStatus.WORKING, task_stages=['working'])
        response = self.client.post('/api/v1/webhooks/order-ready/', {'order_id': order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['message'], f'Order {order.order_number} marked as ready')
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.READY)
        self.assertTrue(EventLog.objects.filter(entity='order', action='webhook_order_ready').exists())

    def test_already_ready(self):
        order = TestDataFactory.create_order(status=OrderStatus.READY)
        response = self.client.post('/api/v1/webhooks/order-ready/', {'order_id': order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(EventLog.objects.filter(action='status_changed').exists())

    def test_unknown_order(self):
        response = self.client.post('/api/v1/webhooks/order-ready/', {'order_id': 99999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_missing_order_id(self):
        response = self.client.post('/api/v1/webhooks/order-ready/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


@override_settings(WEBHOOK_SECRET='s3cret', SMS_WEBHOOK_URL='', CRM_WEBHOOK_URL='')
class PaymentWebhookTests(TestCase):
    """Test the payment webhook"""

    def setUp(self):
        self.client = APIClient()
        self.client.credentials(HTTP_AUTHORIZATION='Bearer s3cret')
        self.order = TestDataFactory.create_order(status=OrderStatus.DONE, total_cents=5000, deposit_cents=1000)

    def _pay(self, amount_cents, transaction_id='txn_1', order=None):
        data = {
            'order_id': (order or self.order).id,
            'amount_cents': amount_cents,
            'transaction_id': transaction_id,
        }
        return self.client.post('/api/v1/webhooks/payment/', data, format='json')

    def test_payment_marks_ready(self):
        response = self._pay(4000)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], f'Payment of CAD 40.00 received for order {self.order.order_number}')
        self.assertEqual(response.data['status'], OrderStatus.READY)

        payment = Payment.objects.get(order=self.order)
        self.assertEqual(payment.source, 'webhook')
        self.assertEqual(payment.method, 'online')
        self.order.refresh_from_db()
        self.assertEqual(self.order.deposit_cents, 5000)
        self.assertEqual(self.order.balance_due_cents, 0)
        self.assertEqual(self.order.status, OrderStatus.READY)

    def test_amount_mismatch(self):
        response = self._pay(1234)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Payment amount mismatch. Expected: 4000, Received: 1234')
        self.assertFalse(Payment.objects.exists())

    def test_duplicate_transaction(self):
        self._pay(4000)
        response = self._pay(4000)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Payment.objects.count(), 1)

    def test_archived_order_keeps_status(self):
        order = TestDataFactory.create_order(status=OrderStatus.ARCHIVED, total_cents=2000)
        response = self._pay(2000, transaction_id='txn_2', order=order)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.ARCHIVED)


class OutboundNotificationTests(TestCase):
    """Test SMS and CRM calls"""

    @override_settings(SMS_WEBHOOK_URL='')
    def test_sms_skipped_without_url(self):
        with patch('atelier.integrations.notifications.requests.post') as mock_post:
            result = send_sms_notification('c-1', 'add')
        self.assertTrue(result['skipped'])
        mock_post.assert_not_called()

    @override_settings(SMS_WEBHOOK_URL='https://hooks.test/sms')
    def test_sms_sent(self):
        mock_response = MagicMock()
        mock_response.json.return_value = {'ok': True}
        with patch('atelier.integrations.notifications.requests.post', return_value=mock_response) as mock_post:
            result = send_sms_notification('c-1', 'add')
        self.assertTrue(result['success'])
        self.assertEqual(mock_post.call_args.kwargs['json'], {'contactId': 'c-1', 'action': 'add'})

    @override_settings(SMS_WEBHOOK_URL='https://hooks.test/sms')
    def test_sms_failure_is_reported(self):
        with patch('atelier.integrations.notifications.requests.post', side_effect=requests.exceptions.ConnectionError('down')):
            result = send_sms_notification('c-1', 'remove')
        self.assertFalse(result['success'])
        self.assertIn('down', result['error'])

    @override_settings(CRM_WEBHOOK_URL='')
    def test_crm_skipped_without_url(self):
        result = upsert_crm_contact(TestDataFactory.create_client())
        self.assertTrue(result['skipped'])

    @override_settings(CRM_WEBHOOK_URL='https://hooks.test/crm')
    def test_sync_stores_contact_id(self):
        client = TestDataFactory.create_client(email='anne@test.com', preferred_contact='email')
        mock_response = MagicMock()
        mock_response.json.return_value = {'contactId': 'ghl-42'}
        with patch('atelier.integrations.notifications.requests.post', return_value=mock_response) as mock_post:
            self.assertEqual(sync_client_contact(client), 'ghl-42')
        self.assertEqual(mock_post.call_args.kwargs['json']['preference'], 'Email')
        client.refresh_from_db()
        self.assertEqual(client.ghl_contact_id, 'ghl-42')
