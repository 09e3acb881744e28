from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from .stage_transitions import OrderStatus, Stage


class Order(models.Model):
    """Customer order: one or more garments worked through the shop pipeline"""
    TYPE_CHOICES = [
        ('alteration', 'Alteration'),
        ('custom', 'Custom'),
    ]

    PRIORITY_CHOICES = [
        ('normal', 'Normal'),
        ('rush', 'Rush'),
        ('custom', 'Custom'),
    ]

    order_number = models.PositiveIntegerField(unique=True)
    client = models.ForeignKey('clients.Client', on_delete=models.PROTECT, related_name='orders')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='alteration')
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='normal')
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    due_date = models.DateField(null=True, blank=True)
    rush = models.BooleanField(default=False)

    # Pricing (cents)
    rush_fee_cents = models.PositiveIntegerField(default=0)
    subtotal_cents = models.PositiveIntegerField(default=0)
    tax_cents = models.PositiveIntegerField(default=0)
    total_cents = models.PositiveIntegerField(default=0)
    deposit_cents = models.PositiveIntegerField(default=0)
    balance_due_cents = models.IntegerField(default=0)

    qrcode = models.CharField(max_length=50, blank=True)
    rack_position = models.CharField(max_length=50, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    ghl_opportunity_id = models.CharField(max_length=100, blank=True, null=True)

    # Kanban work tracking
    work_started_at = models.DateTimeField(null=True, blank=True)
    work_completed_at = models.DateTimeField(null=True, blank=True)
    actual_work_minutes = models.PositiveIntegerField(null=True, blank=True)

    # Order timer
    is_timer_running = models.BooleanField(default=False)
    timer_started_at = models.DateTimeField(null=True, blank=True)
    timer_paused_at = models.DateTimeField(null=True, blank=True)
    total_work_seconds = models.PositiveIntegerField(default=0)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Order #{self.order_number}"

    def refresh_balance(self):
        self.balance_due_cents = self.total_cents - self.deposit_cents

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='orders_status_idx'),
            models.Index(fields=['due_date'], name='orders_due_date_idx'),
            models.Index(fields=['-created_at'], name='orders_created_idx'),
        ]


class Garment(models.Model):
    """Garment dropped off as part of an order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='garments')
    garment_type = models.ForeignKey('catalog.GarmentType', on_delete=models.SET_NULL, null=True, blank=True, related_name='garments')
    type = models.CharField(max_length=100)
    color = models.CharField(max_length=50, blank=True, null=True)
    brand = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    label_code = models.CharField(max_length=20, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} ({self.label_code})"

    class Meta:
        db_table = 'garments'
        ordering = ['id']


class GarmentService(models.Model):
    """Service line item on a garment"""
    garment = models.ForeignKey(Garment, on_delete=models.CASCADE, related_name='services')
    service = models.ForeignKey('catalog.Service', on_delete=models.PROTECT, related_name='garment_services')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    custom_price_cents = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)

    @property
    def unit_price_cents(self):
        if self.custom_price_cents is not None:
            return self.custom_price_cents
        return self.service.base_price_cents

    @property
    def line_total_cents(self):
        return self.unit_price_cents * self.quantity

    def __str__(self):
        return f"{self.service.name} x{self.quantity}"

    class Meta:
        db_table = 'garment_services'
        ordering = ['id']


class Task(models.Model):
    """Unit of work on an order, tracked through the stage graph"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='tasks')
    garment = models.ForeignKey(Garment, on_delete=models.CASCADE, null=True, blank=True, related_name='tasks')
    garment_service = models.ForeignKey(GarmentService, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    operation = models.CharField(max_length=255)
    stage = models.CharField(max_length=20, choices=Stage.choices, default=Stage.PENDING)
    assignee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    is_active = models.BooleanField(default=False)
    started_at = models.DateTimeField(null=True, blank=True)
    stopped_at = models.DateTimeField(null=True, blank=True)
    planned_minutes = models.PositiveIntegerField(null=True, blank=True)
    actual_minutes = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.operation} [{self.stage}]"

    class Meta:
        db_table = 'tasks'
        ordering = ['id']
        indexes = [
            models.Index(fields=['stage'], name='tasks_stage_idx'),
            models.Index(fields=['assignee', 'is_active'], name='tasks_assignee_active_idx'),
        ]


class Payment(models.Model):
    """Payment received against an order"""
    METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('transfer', 'Bank Transfer'),
        ('online', 'Online'),
    ]

    SOURCE_CHOICES = [
        ('counter', 'Counter'),
        ('webhook', 'Webhook'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='payments')
    amount_cents = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='cash')
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='counter')
    transaction_id = models.CharField(max_length=100, blank=True, null=True)
    currency = models.CharField(max_length=3, default='CAD')
    received_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments_received')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Payment {self.amount_cents}c for order #{self.order.order_number}"

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']
