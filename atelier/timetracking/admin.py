from django.contrib import admin
from .models import TimeEntry


@admin.register(TimeEntry)
class TimeEntryAdmin(admin.ModelAdmin):
    list_display = ['user', 'task', 'start_time', 'end_time', 'duration_minutes', 'is_active']
    list_filter = ['is_active', 'user']
    search_fields = ['user__username', 'task__operation', 'notes']
    ordering = ['-start_time']
    readonly_fields = ['created_at', 'updated_at']
