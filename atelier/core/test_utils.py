"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from atelier.catalog.models import Category, GarmentType, Service
from atelier.clients.models import Client
from atelier.orders.models import Order, Garment, GarmentService, Task
from atelier.orders.stage_transitions import OrderStatus, Stage
from django.db.models import Max
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='seamstress', is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_owner(**kwargs):
        return TestDataFactory.create_user(role='owner', **kwargs)

    @staticmethod
    def create_client(first_name=None, last_name='Tremblay', phone=None, email=None, **kwargs):
        """Create a test client"""
        if not first_name:
            first_name = f'Client_{TestDataFactory.random_string(4)}'
        if not phone:
            phone = f'514{random.randint(1000000, 9999999)}'
        return Client.objects.create(
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            email=email,
            **kwargs
        )

    @staticmethod
    def create_category(key=None, name=None, display_order=0):
        """Create a test category"""
        if not key:
            key = f'cat-{TestDataFactory.random_string(6).lower()}'
        return Category.objects.create(
            key=key,
            name=name or key.replace('-', ' ').title(),
            display_order=display_order
        )

    @staticmethod
    def create_garment_type(code=None, name=None, category='alterations', is_common=True):
        if not code:
            code = f'gt-{TestDataFactory.random_string(6).lower()}'
        return GarmentType.objects.create(
            code=code,
            name=name or code,
            category=category,
            is_common=is_common
        )

    @staticmethod
    def create_service(name=None, code=None, base_price_cents=2500, category='alterations', estimated_minutes=30, **kwargs):
        """Create a test service"""
        if not name:
            name = f'Service_{TestDataFactory.random_string(6)}'
        if not code:
            code = f'SRV_{TestDataFactory.random_string(8).upper()}'
        return Service.objects.create(
            code=code,
            name=name,
            base_price_cents=base_price_cents,
            category=category,
            estimated_minutes=estimated_minutes,
            **kwargs
        )

    @staticmethod
    def create_order(client=None, status=OrderStatus.PENDING, task_stages=None, order_type='alteration', rush=False, total_cents=0, **kwargs):
        """
        Create a test order with one garment and a task per entry of task_stages
        """
        if not client:
            client = TestDataFactory.create_client()
        last = Order.objects.aggregate(last=Max('order_number'))['last'] or 0
        order = Order.objects.create(
            order_number=last + 1,
            client=client,
            type=order_type,
            status=status,
            rush=rush,
            total_cents=total_cents,
            balance_due_cents=total_cents,
            **kwargs
        )
        order.qrcode = f'ORD-{order.order_number}'
        order.save(update_fields=['qrcode'])
        if task_stages:
            garment = TestDataFactory.create_garment(order)
            for stage in task_stages:
                TestDataFactory.create_task(order, stage=stage, garment=garment)
        return order

    @staticmethod
    def create_garment(order, garment_type='Pants', label_code=None):
        if not label_code:
            label_code = TestDataFactory.random_string(8).upper()
        return Garment.objects.create(order=order, type=garment_type, label_code=label_code)

    @staticmethod
    def create_garment_service(garment, service=None, quantity=1, custom_price_cents=None):
        if not service:
            service = TestDataFactory.create_service()
        return GarmentService.objects.create(
            garment=garment,
            service=service,
            quantity=quantity,
            custom_price_cents=custom_price_cents
        )

    @staticmethod
    def create_task(order, stage=Stage.PENDING, garment=None, operation='Hem', assignee=None, is_active=False, **kwargs):
        """Create a test task"""
        return Task.objects.create(
            order=order,
            garment=garment,
            operation=operation,
            stage=stage,
            assignee=assignee,
            is_active=is_active,
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
