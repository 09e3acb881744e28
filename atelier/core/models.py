from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Shop staff member with a role"""
    ROLE_CHOICES = [
        ('owner', 'Owner'),
        ('seamstress', 'Seamstress'),
        ('custom', 'Custom Tailor'),
        ('clerk', 'Clerk'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='clerk')
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_owner(self):
        return self.is_superuser or self.role == 'owner'

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class EventLog(models.Model):
    """Business event trail (status changes, intake, payments, timers)"""
    entity = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=100)
    action = models.CharField(max_length=100)
    details = models.JSONField(default=dict, blank=True)
    actor = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='event_logs')
    correlation_id = models.CharField(max_length=64, blank=True, null=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.entity}:{self.entity_id} {self.action}"

    class Meta:
        db_table = 'event_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='event_logs_created_idx'),
            models.Index(fields=['entity', 'entity_id'], name='event_logs_entity_idx'),
            models.Index(fields=['action'], name='event_logs_action_idx'),
        ]
