from django.contrib import admin
from .models import Order, Garment, GarmentService, Task, Payment


class GarmentInline(admin.TabularInline):
    model = Garment
    extra = 0
    readonly_fields = ['label_code', 'created_at']


class TaskInline(admin.TabularInline):
    model = Task
    extra = 0
    fields = ['operation', 'garment', 'stage', 'assignee', 'is_active', 'planned_minutes', 'actual_minutes']


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ['amount_cents', 'method', 'source', 'transaction_id', 'received_by', 'created_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'client', 'type', 'status', 'rush', 'due_date', 'total_cents', 'balance_due_cents', 'created_at']
    list_filter = ['status', 'type', 'rush', 'priority']
    search_fields = ['order_number', 'client__first_name', 'client__last_name', 'client__phone']
    ordering = ['-created_at']
    inlines = [GarmentInline, TaskInline, PaymentInline]
    readonly_fields = ['qrcode', 'work_started_at', 'work_completed_at', 'actual_work_minutes', 'created_at', 'updated_at']


class GarmentServiceInline(admin.TabularInline):
    model = GarmentService
    extra = 0


@admin.register(Garment)
class GarmentAdmin(admin.ModelAdmin):
    list_display = ['label_code', 'type', 'color', 'order', 'created_at']
    search_fields = ['label_code', 'type', 'order__order_number']
    inlines = [GarmentServiceInline]


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['operation', 'order', 'stage', 'assignee', 'is_active', 'started_at', 'actual_minutes']
    list_filter = ['stage', 'is_active']
    search_fields = ['operation', 'order__order_number']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['order', 'amount_cents', 'method', 'source', 'transaction_id', 'received_by', 'created_at']
    list_filter = ['method', 'source']
    search_fields = ['transaction_id', 'order__order_number']
    ordering = ['-created_at']
