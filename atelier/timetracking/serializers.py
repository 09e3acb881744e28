from rest_framework import serializers
from atelier.orders.models import Task
from .models import TimeEntry
from .utils import format_duration


class TimeEntrySerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)
    task_operation = serializers.CharField(source='task.operation', read_only=True)
    order_number = serializers.IntegerField(source='task.order.order_number', read_only=True)
    duration_display = serializers.SerializerMethodField()

    class Meta:
        model = TimeEntry
        fields = [
            'id', 'task', 'task_operation', 'order_number', 'user', 'username',
            'start_time', 'end_time', 'duration_minutes', 'duration_display',
            'notes', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_duration_display(self, obj):
        if obj.duration_minutes is None:
            return None
        return format_duration(obj.duration_minutes)


class TimeEntryStartSerializer(serializers.Serializer):
    task_id = serializers.PrimaryKeyRelatedField(queryset=Task.objects.all())
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TimeEntryStopSerializer(serializers.Serializer):
    entry_id = serializers.IntegerField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
