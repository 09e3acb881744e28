from rest_framework import serializers
from .models import Client


class ClientSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    order_count = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id', 'first_name', 'last_name', 'full_name', 'phone', 'email',
            'preferred_contact', 'newsletter_consent', 'language', 'ghl_contact_id',
            'notes', 'order_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['ghl_contact_id', 'created_at', 'updated_at']

    def get_order_count(self, obj):
        annotated = getattr(obj, 'order_count', None)
        if annotated is not None:
            return annotated
        return obj.orders.count()

    def validate(self, attrs):
        phone = attrs.get('phone', getattr(self.instance, 'phone', None))
        email = attrs.get('email', getattr(self.instance, 'email', None))
        if not phone and not email:
            raise serializers.ValidationError('A client needs a phone number or an email address')
        return attrs
