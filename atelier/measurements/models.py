from django.conf import settings
from django.db import models
from django.utils import timezone


class Measurement(models.Model):
    """Body measurements taken for one garment of an order"""
    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, related_name='measurements')
    garment = models.ForeignKey('orders.Garment', on_delete=models.CASCADE, related_name='measurements')
    taken_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='measurements_taken')
    measurements = models.JSONField(default=dict)
    notes = models.TextField(blank=True, null=True)
    taken_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Measurements for garment {self.garment_id} ({self.taken_at:%Y-%m-%d})"

    class Meta:
        db_table = 'measurements'
        ordering = ['-taken_at']
        indexes = [
            models.Index(fields=['order', '-taken_at'], name='measurements_order_idx'),
            models.Index(fields=['garment', '-taken_at'], name='measurements_garment_idx'),
        ]
