from django.conf import settings
from django.db import models


class TimeEntry(models.Model):
    """A work session of one user on one task"""
    task = models.ForeignKey('orders.Task', on_delete=models.CASCADE, related_name='time_entries')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='time_entries')
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} on task {self.task_id} ({self.start_time:%Y-%m-%d %H:%M})"

    class Meta:
        db_table = 'time_entries'
        ordering = ['-start_time']
        verbose_name_plural = 'Time entries'
        indexes = [
            models.Index(fields=['user', 'is_active'], name='time_entries_user_active_idx'),
            models.Index(fields=['-start_time'], name='time_entries_start_idx'),
        ]
