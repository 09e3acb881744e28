"""
Test suite for Orders module
Tests: intake, board moves, task start/stop/stage, order timer, payments, archive and public lookup
"""
from datetime import timedelta
from unittest import mock

import requests

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from atelier.clients.models import Client
from atelier.core.models import EventLog
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.orders.models import Order, Task, Payment
from atelier.orders.stage_transitions import OrderStatus, Stage
from atelier.orders.workflow import apply_task_stage_change, sync_order_status


@override_settings(CRM_WEBHOOK_URL='', SMS_WEBHOOK_URL='')
class IntakeAPITests(TestCase):
    """Test creating orders from the intake form"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='clerk')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.hem = TestDataFactory.create_service(name='Hem', base_price_cents=2500, estimated_minutes=30)
        self.zipper = TestDataFactory.create_service(name='Zipper', base_price_cents=3000, estimated_minutes=45)

    def _payload(self, **order):
        return {
            'client': {'first_name': 'Marie', 'last_name': 'Roy', 'phone': '5145550101', 'email': 'marie@example.com'},
            'order': {'type': 'alteration', **order},
            'garments': [{
                'type': 'Pants',
                'color': 'Navy',
                'services': [
                    {'service_id': self.hem.id, 'qty': 2},
                    {'service_id': self.zipper.id, 'custom_price_cents': 4000},
                ],
            }],
        }

    def test_intake_creates_order(self):
        response = self.client.post('/api/v1/intake/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['totals'], {
            'subtotal_cents': 9000, 'tax_cents': 1080, 'total_cents': 10080, 'rush_fee_cents': 0,
        })
        self.assertEqual(response.data['qrcode'], f"ORD-{response.data['order_number']}")
        self.assertTrue(response.data['qrcode_image'].startswith('data:image/png;base64,'))

        order = Order.objects.get(pk=response.data['order_id'])
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.balance_due_cents, 10080)
        self.assertEqual(order.created_by, self.user)
        garment = order.garments.get()
        self.assertEqual(len(garment.label_code), 8)
        self.assertEqual(garment.services.count(), 2)

    def test_intake_creates_one_task_per_service(self):
        response = self.client.post('/api/v1/intake/', self._payload(), format='json')
        tasks = Task.objects.filter(order_id=response.data['order_id']).order_by('id')
        self.assertEqual([t.operation for t in tasks], ['Hem', 'Zipper'])
        self.assertEqual([t.planned_minutes for t in tasks], [60, 45])
        self.assertTrue(all(t.stage == Stage.PENDING for t in tasks))

    def test_intake_rush_order(self):
        response = self.client.post('/api/v1/intake/', self._payload(rush=True), format='json')
        self.assertEqual(response.data['totals']['rush_fee_cents'], 3000)
        self.assertEqual(response.data['totals']['total_cents'], 13440)
        self.assertEqual(Order.objects.get(pk=response.data['order_id']).priority, 'rush')

    def test_intake_reuses_client_by_email(self):
        existing = TestDataFactory.create_client(first_name='Old', email='marie@example.com')
        response = self.client.post('/api/v1/intake/', self._payload(), format='json')
        self.assertEqual(Order.objects.get(pk=response.data['order_id']).client_id, existing.id)
        existing.refresh_from_db()
        self.assertEqual(existing.first_name, 'Marie')
        self.assertEqual(Client.objects.count(), 1)

    def test_order_numbers_increase(self):
        first = self.client.post('/api/v1/intake/', self._payload(), format='json')
        second = self.client.post('/api/v1/intake/', self._payload(), format='json')
        self.assertEqual(second.data['order_number'], first.data['order_number'] + 1)

    def test_order_number_collision_retries(self):
        taken = TestDataFactory.create_order()
        numbers = [taken.order_number, taken.order_number + 1]
        with mock.patch('atelier.orders.intake.next_order_number', side_effect=numbers):
            response = self.client.post('/api/v1/intake/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_number'], taken.order_number + 1)

    def test_intake_requires_garments(self):
        payload = self._payload()
        payload['garments'] = []
        response = self.client.post('/api/v1/intake/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Order.objects.count(), 0)

    def test_intake_requires_contact(self):
        payload = self._payload()
        payload['client'] = {'first_name': 'Marie', 'last_name': 'Roy'}
        response = self.client.post('/api/v1/intake/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_intake_unknown_service(self):
        payload = self._payload()
        payload['garments'][0]['services'] = [{'service_id': 99999}]
        response = self.client.post('/api/v1/intake/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(CRM_WEBHOOK_URL='https://crm.example.com/hook')
    @mock.patch('atelier.integrations.notifications.requests.post')
    def test_intake_syncs_crm_contact(self, mock_post):
        mock_post.return_value.json.return_value = {'contactId': 'ghl-123'}
        response = self.client.post('/api/v1/intake/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        client = Order.objects.get(pk=response.data['order_id']).client
        self.assertEqual(client.ghl_contact_id, 'ghl-123')
        self.assertEqual(mock_post.call_args.kwargs['json']['preference'], 'Text Messages')

    def test_intake_requires_authentication(self):
        self.client.logout()
        response = self.client.post('/api/v1/intake/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


@override_settings(SMS_WEBHOOK_URL='')
class OrderBoardAPITests(TestCase):
    """Test listing, board moves and order maintenance"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.owner = TestDataFactory.create_owner()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_excludes_archived(self):
        active = TestDataFactory.create_order()
        archived = TestDataFactory.create_order(status=OrderStatus.ARCHIVED)
        response = self.client.get('/api/v1/orders/')
        ids = [o['id'] for o in response.data['results']]
        self.assertIn(active.id, ids)
        self.assertNotIn(archived.id, ids)

        response = self.client.get('/api/v1/orders/?status=archived')
        self.assertEqual([o['id'] for o in response.data['results']], [archived.id])

    def test_list_pagination(self):
        for _ in range(3):
            TestDataFactory.create_order()
        response = self.client.get('/api/v1/orders/?limit=2')
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['next'], 2)

    def test_list_search_by_order_number(self):
        order = TestDataFactory.create_order()
        TestDataFactory.create_order()
        response = self.client.get(f'/api/v1/orders/?search=ORD-{order.order_number}')
        self.assertEqual([o['id'] for o in response.data['results']], [order.id])

    def test_board_groups_by_status(self):
        TestDataFactory.create_order(status=OrderStatus.WORKING)
        TestDataFactory.create_order(status=OrderStatus.READY)
        TestDataFactory.create_order(status=OrderStatus.ARCHIVED)
        response = self.client.get('/api/v1/orders/board/')
        self.assertEqual(response.data['counts']['working'], 1)
        self.assertEqual(response.data['counts']['ready'], 1)
        self.assertNotIn('archived', response.data['counts'])

    def test_stage_pending_to_working_stamps_start(self):
        order = TestDataFactory.create_order(task_stages=['pending'])
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'working'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'working')
        order.refresh_from_db()
        self.assertIsNotNone(order.work_started_at)

    def test_stage_board_allows_any_active_move(self):
        order = TestDataFactory.create_order(task_stages=['pending'])
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.DELIVERED)

    def test_stage_done_auto_advances_when_tasks_complete(self):
        order = TestDataFactory.create_order(status=OrderStatus.WORKING, task_stages=['done', 'ready'])
        order.work_started_at = timezone.now() - timedelta(minutes=90)
        order.save()
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'done'}, format='json')
        self.assertEqual(response.data['requested_status'], 'done')
        self.assertEqual(response.data['status'], 'ready')
        self.assertTrue(response.data['all_tasks_complete'])
        self.assertTrue(response.data['auto_advanced'])
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.READY)
        self.assertEqual(order.actual_work_minutes, 90)
        self.assertTrue(EventLog.objects.filter(entity='order', entity_id=str(order.id), action='auto_advanced_to_ready').exists())

    def test_stage_done_stays_done_with_open_tasks(self):
        order = TestDataFactory.create_order(status=OrderStatus.WORKING, task_stages=['done', 'working'])
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'done'}, format='json')
        self.assertEqual(response.data['status'], 'done')
        self.assertFalse(response.data['all_tasks_complete'])
        self.assertFalse(response.data['auto_advanced'])

    def test_stage_archived_only_back_to_pending(self):
        order = TestDataFactory.create_order(status=OrderStatus.ARCHIVED)
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'ready'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('Allowed transitions: pending', response.data['message'])
        self.assertIn('correlation_id', response.data)

        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_stage_rejects_unknown_value(self):
        order = TestDataFactory.create_order()
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(SMS_WEBHOOK_URL='https://sms.example.com/hook')
    @mock.patch('atelier.integrations.notifications.requests.post')
    def test_stage_ready_notifies_client(self, mock_post):
        mock_post.return_value.json.return_value = {'ok': True}
        client = TestDataFactory.create_client(ghl_contact_id='contact-1')
        order = TestDataFactory.create_order(client=client, status=OrderStatus.DONE)
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'ready'}, format='json')
        self.assertTrue(response.data['notification_sent'])
        mock_post.assert_called_once()
        self.assertEqual(mock_post.call_args.kwargs['json'], {'contactId': 'contact-1', 'action': 'add'})

    @override_settings(SMS_WEBHOOK_URL='https://sms.example.com/hook')
    @mock.patch('atelier.integrations.notifications.requests.post')
    def test_stage_notification_failure_does_not_fail_move(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('down')
        client = TestDataFactory.create_client(ghl_contact_id='contact-1')
        order = TestDataFactory.create_order(client=client, status=OrderStatus.READY)
        response = self.client.post(f'/api/v1/orders/{order.id}/stage/', {'stage': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['notification_sent'])

    def test_detail_patch_ignores_status(self):
        order = TestDataFactory.create_order()
        response = self.client.patch(
            f'/api/v1/orders/{order.id}/', {'rack_position': 'A-3', 'status': 'delivered'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.rack_position, 'A-3')
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_delete_is_owner_only(self):
        order = TestDataFactory.create_order()
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.owner)
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Order.objects.filter(pk=order.id).exists())

    def test_archive_delivered(self):
        delivered = TestDataFactory.create_order(status=OrderStatus.DELIVERED)
        ready = TestDataFactory.create_order(status=OrderStatus.READY)
        response = self.client.post('/api/v1/orders/archive/', {'archive_all_delivered': True}, format='json')
        self.assertEqual(response.data['archived_count'], 1)
        delivered.refresh_from_db()
        ready.refresh_from_db()
        self.assertEqual(delivered.status, OrderStatus.ARCHIVED)
        self.assertEqual(ready.status, OrderStatus.READY)

    def test_archive_requires_selection(self):
        response = self.client.post('/api/v1/orders/archive/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_history(self):
        TestDataFactory.create_order(status=OrderStatus.DELIVERED)
        TestDataFactory.create_order(status=OrderStatus.ARCHIVED)
        TestDataFactory.create_order(status=OrderStatus.WORKING)
        response = self.client.get('/api/v1/orders/history/')
        self.assertEqual(response.data['count'], 2)

    def test_search(self):
        client = TestDataFactory.create_client(first_name='Genevieve', last_name='Lapointe')
        order = TestDataFactory.create_order(client=client)
        response = self.client.get('/api/v1/orders/search/?q=lapointe')
        self.assertEqual([o['id'] for o in response.data], [order.id])

    def test_worklist_export(self):
        order = TestDataFactory.create_order(status=OrderStatus.WORKING)
        garment = TestDataFactory.create_garment(order, garment_type='Jacket')
        TestDataFactory.create_garment_service(garment, service=TestDataFactory.create_service(name='Take in sleeves'))
        response = self.client.get('/api/v1/orders/worklist-export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        content = response.content.decode()
        self.assertIn('Take in sleeves', content)
        self.assertIn('Jacket', content)

    def test_public_status_lookup(self):
        client = TestDataFactory.create_client(phone='(514) 555-0199')
        order = TestDataFactory.create_order(client=client, status=OrderStatus.READY)
        public = APIClient()
        response = public.get(f'/api/v1/orders/{order.id}/status/?phone=5145550199')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_ready'])

        response = public.get(f'/api/v1/orders/{order.id}/status/?phone=5140000000')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = public.get(f'/api/v1/orders/{order.id}/status/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_public_status_needs_full_phone(self):
        client = TestDataFactory.create_client(phone='(514) 555-0199')
        order = TestDataFactory.create_order(client=client, status=OrderStatus.READY)
        public = APIClient()
        for partial in ('0199', '5550199', '45550199'):
            response = public.get(f'/api/v1/orders/{order.id}/status/?phone={partial}')
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
            self.assertNotIn('balance_due_cents', response.data)

        response = public.get(f'/api/v1/orders/{order.id}/status/', {'phone': '+1 514-555-0199'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class PaymentAPITests(TestCase):
    """Test counter payments"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='clerk')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order(total_cents=10080)

    def test_record_payment(self):
        response = self.client.post(
            f'/api/v1/orders/{self.order.id}/payments/', {'amount_cents': 5000, 'method': 'card'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['balance_due_cents'], 5080)
        self.order.refresh_from_db()
        self.assertEqual(self.order.deposit_cents, 5000)
        payment = Payment.objects.get()
        self.assertEqual(payment.source, 'counter')
        self.assertEqual(payment.received_by, self.user)

    def test_payment_cannot_exceed_balance(self):
        response = self.client.post(
            f'/api/v1/orders/{self.order.id}/payments/', {'amount_cents': 20000}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Payment.objects.count(), 0)

    def test_list_payments(self):
        Payment.objects.create(order=self.order, amount_cents=1000)
        response = self.client.get(f'/api/v1/orders/{self.order.id}/payments/')
        self.assertEqual(len(response.data), 1)


class OrderTimerAPITests(TestCase):
    """Test the order work timer"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order()

    def test_start_and_pause(self):
        response = self.client.post(f'/api/v1/orders/{self.order.id}/timer/start/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_running'])

        Order.objects.filter(pk=self.order.id).update(timer_started_at=timezone.now() - timedelta(seconds=120))
        response = self.client.post(f'/api/v1/orders/{self.order.id}/timer/pause/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_running'])
        self.assertGreaterEqual(response.data['total_work_seconds'], 120)
        self.assertEqual(response.data['elapsed_minutes'], response.data['total_work_seconds'] // 60)

    def test_start_twice(self):
        self.client.post(f'/api/v1/orders/{self.order.id}/timer/start/')
        response = self.client.post(f'/api/v1/orders/{self.order.id}/timer/start/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pause_when_stopped(self):
        response = self.client.post(f'/api/v1/orders/{self.order.id}/timer/pause/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status(self):
        response = self.client.get(f'/api/v1/orders/{self.order.id}/timer/')
        self.assertEqual(response.data['elapsed_seconds'], 0)


class TaskAPITests(TestCase):
    """Test task start, stop and stage moves"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='seamstress')
        self.other = TestDataFactory.create_user(role='seamstress')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order(task_stages=['pending'])
        self.task = self.order.tasks.get()

    def test_start_task(self):
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/start/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_status'], 'working')
        self.task.refresh_from_db()
        self.assertTrue(self.task.is_active)
        self.assertEqual(self.task.stage, Stage.WORKING)
        self.assertEqual(self.task.assignee, self.user)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.WORKING)

    def test_start_active_task(self):
        self.client.post(f'/api/v1/tasks/{self.task.id}/start/')
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/start/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Task is already active')

    def test_one_active_task_per_user(self):
        other_order = TestDataFactory.create_order(task_stages=['pending'])
        self.client.post(f'/api/v1/tasks/{self.task.id}/start/')
        response = self.client.post(f'/api/v1/tasks/{other_order.tasks.get().id}/start/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_start_missing_task(self):
        response = self.client.post('/api/v1/tasks/99999/start/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stop_task(self):
        self.client.post(f'/api/v1/tasks/{self.task.id}/start/')
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stop/', {'actual_minutes': 25}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_status'], 'done')
        self.task.refresh_from_db()
        self.assertFalse(self.task.is_active)
        self.assertEqual(self.task.stage, Stage.DONE)
        self.assertEqual(self.task.actual_minutes, 25)

    def test_stop_measures_elapsed_time(self):
        self.client.post(f'/api/v1/tasks/{self.task.id}/start/')
        Task.objects.filter(pk=self.task.id).update(started_at=timezone.now() - timedelta(minutes=12, seconds=40))
        self.client.post(f'/api/v1/tasks/{self.task.id}/stop/')
        self.task.refresh_from_db()
        self.assertEqual(self.task.actual_minutes, 12)

    def test_stop_by_other_user(self):
        self.client.post(f'/api/v1/tasks/{self.task.id}/start/')
        self.client.authenticate_user(self.other)
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stop/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_stop_inactive_task(self):
        self.task.assignee = self.user
        self.task.save()
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stop/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Task is not active')

    def test_stage_move(self):
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stage/', {'stage': 'working'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_valid'])
        self.assertEqual(response.data['order_status_update'], 'working')
        self.assertEqual(response.data['valid_next_stages'], ['done', 'pending'])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.WORKING)

    def test_stage_invalid_move(self):
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stage/', {'stage': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(response.data['is_valid'])
        self.assertIsNone(response.data['order_status_update'])
        self.assertEqual(response.data['valid_next_stages'], ['working'])
        self.task.refresh_from_db()
        self.assertEqual(self.task.stage, Stage.PENDING)

    def test_stage_rejects_archived(self):
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stage/', {'stage': 'archived'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stage_keeps_archived_order_status(self):
        Order.objects.filter(pk=self.order.id).update(status=OrderStatus.ARCHIVED)
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stage/', {'stage': 'working'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.ARCHIVED)

    def test_stage_preview_does_not_change_anything(self):
        response = self.client.post(f'/api/v1/tasks/{self.task.id}/stage/preview/', {'stage': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_valid'])
        self.task.refresh_from_db()
        self.assertEqual(self.task.stage, Stage.PENDING)

    def test_task_detail(self):
        response = self.client.get(f'/api/v1/tasks/{self.task.id}/')
        self.assertEqual(response.data['valid_next_stages'], ['working'])


class WorkflowTests(TestCase):
    """Test the database side of stage changes"""

    def test_task_stage_change_deactivates_task_leaving_working(self):
        order = TestDataFactory.create_order(task_stages=['working'])
        task = order.tasks.get()
        task.is_active = True
        task.save()
        transition = apply_task_stage_change(task, 'done')
        self.assertTrue(transition.is_valid)
        task.refresh_from_db()
        self.assertFalse(task.is_active)
        self.assertIsNotNone(task.stopped_at)

    def test_sync_order_status(self):
        order = TestDataFactory.create_order(task_stages=['ready', 'delivered'])
        self.assertEqual(sync_order_status(order), OrderStatus.READY)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.READY)

    def test_sync_skips_archived(self):
        order = TestDataFactory.create_order(status=OrderStatus.ARCHIVED, task_stages=['working'])
        self.assertEqual(sync_order_status(order), OrderStatus.ARCHIVED)
