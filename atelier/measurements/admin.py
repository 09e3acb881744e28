from django.contrib import admin
from .models import Measurement


@admin.register(Measurement)
class MeasurementAdmin(admin.ModelAdmin):
    list_display = ['order', 'garment', 'taken_by', 'taken_at']
    list_filter = ['taken_by']
    search_fields = ['order__order_number', 'garment__label_code', 'notes']
    ordering = ['-taken_at']
    readonly_fields = ['created_at']
