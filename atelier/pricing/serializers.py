from rest_framework import serializers
from atelier.catalog.models import Service


class QuoteLineSerializer(serializers.Serializer):
    service_id = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    qty = serializers.IntegerField(min_value=1, default=1)
    custom_price_cents = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class QuoteSerializer(serializers.Serializer):
    items = QuoteLineSerializer(many=True)
    is_rush = serializers.BooleanField(default=False)
    rush_fee_type = serializers.ChoiceField(choices=['small', 'large'], required=False, allow_null=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one item is required')
        return value


class PricingOverridesSerializer(serializers.Serializer):
    rush_fee_small_cents = serializers.IntegerField(min_value=0, required=False)
    rush_fee_large_cents = serializers.IntegerField(min_value=0, required=False)
    gst_pst_rate_bps = serializers.IntegerField(min_value=0, max_value=10000, required=False)
    rush_fee_large_threshold_cents = serializers.IntegerField(min_value=0, required=False)


class RecalculateSerializer(serializers.Serializer):
    is_rush = serializers.BooleanField(required=False)
    overrides = PricingOverridesSerializer(required=False)


class RushTimelineSerializer(serializers.Serializer):
    estimated_days = serializers.IntegerField(min_value=0)
    order_type = serializers.ChoiceField(choices=['alteration', 'custom'], default='alteration')
    is_rush = serializers.BooleanField(default=True)
    base_price_cents = serializers.IntegerField(min_value=0, required=False)
