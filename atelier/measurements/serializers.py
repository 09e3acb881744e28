from rest_framework import serializers
from atelier.orders.models import Order, Garment
from .garment_templates import INCHES, UNITS
from .models import Measurement


class MeasurementSerializer(serializers.ModelSerializer):
    taken_by_name = serializers.CharField(source='taken_by.username', read_only=True, default=None)
    garment_label = serializers.CharField(source='garment.label_code', read_only=True)

    class Meta:
        model = Measurement
        fields = [
            'id', 'order', 'garment', 'garment_label', 'taken_by', 'taken_by_name',
            'measurements', 'notes', 'taken_at', 'created_at'
        ]
        read_only_fields = fields


class MeasurementCreateSerializer(serializers.Serializer):
    """Values keyed by template point, e.g. {"waist": 32, "inseam": 30.5}"""
    order_id = serializers.PrimaryKeyRelatedField(queryset=Order.objects.all())
    garment_id = serializers.PrimaryKeyRelatedField(queryset=Garment.objects.select_related('garment_type'))
    values = serializers.DictField(child=serializers.FloatField(allow_null=True))
    point_notes = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False, default=dict)
    unit = serializers.ChoiceField(choices=UNITS, default=INCHES)
    garment_type = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs['garment_id'].order_id != attrs['order_id'].id:
            raise serializers.ValidationError({'garment_id': 'Garment does not belong to this order'})
        return attrs
