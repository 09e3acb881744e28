# Generated manually

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clients', '0001_initial'),
        ('catalog', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.PositiveIntegerField(unique=True)),
                ('type', models.CharField(choices=[('alteration', 'Alteration'), ('custom', 'Custom')], default='alteration', max_length=20)),
                ('priority', models.CharField(choices=[('normal', 'Normal'), ('rush', 'Rush'), ('custom', 'Custom')], default='normal', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('working', 'Working'), ('done', 'Done'), ('ready', 'Ready'), ('delivered', 'Delivered'), ('archived', 'Archived')], default='pending', max_length=20)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('rush', models.BooleanField(default=False)),
                ('rush_fee_cents', models.PositiveIntegerField(default=0)),
                ('subtotal_cents', models.PositiveIntegerField(default=0)),
                ('tax_cents', models.PositiveIntegerField(default=0)),
                ('total_cents', models.PositiveIntegerField(default=0)),
                ('deposit_cents', models.PositiveIntegerField(default=0)),
                ('balance_due_cents', models.IntegerField(default=0)),
                ('qrcode', models.CharField(blank=True, max_length=50)),
                ('rack_position', models.CharField(blank=True, max_length=50, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('ghl_opportunity_id', models.CharField(blank=True, max_length=100, null=True)),
                ('work_started_at', models.DateTimeField(blank=True, null=True)),
                ('work_completed_at', models.DateTimeField(blank=True, null=True)),
                ('actual_work_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('is_timer_running', models.BooleanField(default=False)),
                ('timer_started_at', models.DateTimeField(blank=True, null=True)),
                ('timer_paused_at', models.DateTimeField(blank=True, null=True)),
                ('total_work_seconds', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='clients.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='orders_status_idx'),
                    models.Index(fields=['due_date'], name='orders_due_date_idx'),
                    models.Index(fields=['-created_at'], name='orders_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Garment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(max_length=100)),
                ('color', models.CharField(blank=True, max_length=50, null=True)),
                ('brand', models.CharField(blank=True, max_length=100, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('label_code', models.CharField(max_length=20, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='garments', to='orders.order')),
                ('garment_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='garments', to='catalog.garmenttype')),
            ],
            options={
                'db_table': 'garments',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='GarmentService',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('custom_price_cents', models.PositiveIntegerField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('garment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='services', to='orders.garment')),
                ('service', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='garment_services', to='catalog.service')),
            ],
            options={
                'db_table': 'garment_services',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('operation', models.CharField(max_length=255)),
                ('stage', models.CharField(choices=[('pending', 'Pending'), ('working', 'Working'), ('done', 'Done'), ('ready', 'Ready'), ('delivered', 'Delivered')], default='pending', max_length=20)),
                ('is_active', models.BooleanField(default=False)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('stopped_at', models.DateTimeField(blank=True, null=True)),
                ('planned_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('actual_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='orders.order')),
                ('garment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='orders.garment')),
                ('garment_service', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks', to='orders.garmentservice')),
                ('assignee', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'tasks',
                'ordering': ['id'],
                'indexes': [
                    models.Index(fields=['stage'], name='tasks_stage_idx'),
                    models.Index(fields=['assignee', 'is_active'], name='tasks_assignee_active_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount_cents', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('method', models.CharField(choices=[('cash', 'Cash'), ('card', 'Card'), ('transfer', 'Bank Transfer'), ('online', 'Online')], default='cash', max_length=20)),
                ('source', models.CharField(choices=[('counter', 'Counter'), ('webhook', 'Webhook')], default='counter', max_length=20)),
                ('transaction_id', models.CharField(blank=True, max_length=100, null=True)),
                ('currency', models.CharField(default='CAD', max_length=3)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='orders.order')),
                ('received_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments_received', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-created_at'],
            },
        ),
    ]
