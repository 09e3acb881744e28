from rest_framework import serializers
from atelier.orders.models import Payment


class OrderReadyWebhookSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    timestamp = serializers.DateTimeField(required=False, allow_null=True)
    metadata = serializers.DictField(required=False, default=dict)


class PaymentWebhookSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    amount_cents = serializers.IntegerField(min_value=1)
    currency = serializers.CharField(max_length=3, default='CAD')
    payment_method = serializers.ChoiceField(choices=[c[0] for c in Payment.METHOD_CHOICES], default='online')
    transaction_id = serializers.CharField(max_length=100)
    timestamp = serializers.DateTimeField(required=False, allow_null=True)
    metadata = serializers.DictField(required=False, default=dict)
