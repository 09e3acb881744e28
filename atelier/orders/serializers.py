from rest_framework import serializers
from atelier.catalog.models import Service
from atelier.pricing.rush import get_rush_indicator
from .models import Order, Garment, GarmentService, Task, Payment
from .stage_transitions import OrderStatus, Stage, get_valid_next_stages


class TaskSerializer(serializers.ModelSerializer):
    assignee_name = serializers.CharField(source='assignee.username', read_only=True, default=None)
    garment_type = serializers.CharField(source='garment.type', read_only=True, default=None)
    valid_next_stages = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = [
            'id', 'order', 'garment', 'garment_type', 'operation', 'stage', 'valid_next_stages',
            'assignee', 'assignee_name', 'is_active', 'started_at', 'stopped_at',
            'planned_minutes', 'actual_minutes', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'order', 'garment', 'stage', 'assignee', 'is_active', 'started_at', 'stopped_at',
            'actual_minutes', 'created_at', 'updated_at'
        ]

    def get_valid_next_stages(self, obj):
        return get_valid_next_stages(obj.stage)


class GarmentServiceSerializer(serializers.ModelSerializer):
    service_name = serializers.CharField(source='service.name', read_only=True)
    service_code = serializers.CharField(source='service.code', read_only=True)
    unit_price_cents = serializers.IntegerField(read_only=True)
    line_total_cents = serializers.IntegerField(read_only=True)

    class Meta:
        model = GarmentService
        fields = [
            'id', 'service', 'service_name', 'service_code', 'quantity',
            'custom_price_cents', 'unit_price_cents', 'line_total_cents', 'notes'
        ]


class GarmentSerializer(serializers.ModelSerializer):
    services = GarmentServiceSerializer(many=True, read_only=True)

    class Meta:
        model = Garment
        fields = ['id', 'garment_type', 'type', 'color', 'brand', 'notes', 'label_code', 'services', 'created_at']


class GarmentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Garment
        fields = ['id', 'type', 'color', 'label_code']


class TaskSummarySerializer(serializers.ModelSerializer):
    assignee_name = serializers.CharField(source='assignee.username', read_only=True, default=None)

    class Meta:
        model = Task
        fields = ['id', 'garment', 'operation', 'stage', 'assignee', 'assignee_name', 'is_active']


class PaymentSerializer(serializers.ModelSerializer):
    received_by_username = serializers.CharField(source='received_by.username', read_only=True, default=None)

    class Meta:
        model = Payment
        fields = [
            'id', 'order', 'amount_cents', 'method', 'source', 'transaction_id', 'currency',
            'received_by', 'received_by_username', 'created_at'
        ]
        read_only_fields = ['order', 'source', 'received_by', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    """Board card: order with client name, garments and tasks"""
    client_name = serializers.CharField(source='client.full_name', read_only=True)
    client_phone = serializers.CharField(source='client.phone', read_only=True)
    garments = GarmentSummarySerializer(many=True, read_only=True)
    tasks = TaskSummarySerializer(many=True, read_only=True)
    rush_indicator = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'client', 'client_name', 'client_phone', 'type', 'priority',
            'status', 'due_date', 'rush', 'rush_indicator', 'total_cents', 'balance_due_cents',
            'rack_position', 'is_timer_running', 'garments', 'tasks', 'created_at', 'updated_at'
        ]

    def get_rush_indicator(self, obj):
        return get_rush_indicator(obj.type, obj.rush)


class OrderDetailSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.full_name', read_only=True)
    garments = GarmentSerializer(many=True, read_only=True)
    tasks = TaskSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    rush_indicator = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'client', 'client_name', 'type', 'priority', 'status',
            'due_date', 'rush', 'rush_indicator', 'rush_fee_cents', 'subtotal_cents', 'tax_cents',
            'total_cents', 'deposit_cents', 'balance_due_cents', 'qrcode', 'rack_position',
            'notes', 'ghl_opportunity_id', 'work_started_at', 'work_completed_at',
            'actual_work_minutes', 'is_timer_running', 'timer_started_at', 'timer_paused_at',
            'total_work_seconds', 'garments', 'tasks', 'payments', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'order_number', 'client', 'type', 'status', 'rush', 'rush_fee_cents',
            'subtotal_cents', 'tax_cents', 'total_cents', 'deposit_cents', 'balance_due_cents',
            'qrcode', 'work_started_at', 'work_completed_at', 'actual_work_minutes',
            'is_timer_running', 'timer_started_at', 'timer_paused_at', 'total_work_seconds',
            'created_at', 'updated_at'
        ]

    def get_rush_indicator(self, obj):
        return get_rush_indicator(obj.type, obj.rush)


# Intake payloads

class IntakeClientSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    language = serializers.ChoiceField(choices=['fr', 'en'], default='fr')
    preferred_contact = serializers.ChoiceField(choices=['sms', 'email'], default='sms')
    newsletter_consent = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if not attrs.get('phone') and not attrs.get('email'):
            raise serializers.ValidationError('A client needs a phone number or an email address')
        return attrs


class IntakeOrderSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[c[0] for c in Order.TYPE_CHOICES])
    priority = serializers.ChoiceField(choices=[c[0] for c in Order.PRIORITY_CHOICES], default='normal')
    due_date = serializers.DateField(required=False, allow_null=True)
    rush = serializers.BooleanField(default=False)
    rush_fee_type = serializers.ChoiceField(choices=['small', 'large'], required=False, allow_null=True)
    rack_position = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class IntakeServiceLineSerializer(serializers.Serializer):
    service_id = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    qty = serializers.IntegerField(min_value=1, default=1)
    custom_price_cents = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class IntakeGarmentSerializer(serializers.Serializer):
    type = serializers.CharField(max_length=100)
    garment_type_id = serializers.IntegerField(required=False, allow_null=True)
    color = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    brand = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    services = IntakeServiceLineSerializer(many=True)

    def validate_services(self, value):
        if not value:
            raise serializers.ValidationError('At least one service is required')
        return value


class IntakeSerializer(serializers.Serializer):
    client = IntakeClientSerializer()
    order = IntakeOrderSerializer()
    garments = IntakeGarmentSerializer(many=True)

    def validate_garments(self, value):
        if not value:
            raise serializers.ValidationError('At least one garment is required')
        return value


# Status changes

class OrderStageSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TaskStageSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=Stage.choices)


class TaskStopSerializer(serializers.Serializer):
    actual_minutes = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class ArchiveSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=False)
    archive_all_delivered = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if not attrs.get('order_ids') and not attrs.get('archive_all_delivered'):
            raise serializers.ValidationError('Provide order_ids or archive_all_delivered')
        return attrs
