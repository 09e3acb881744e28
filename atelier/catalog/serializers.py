from rest_framework import serializers
from .models import Category, GarmentType, Service


class CategorySerializer(serializers.ModelSerializer):
    service_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'key', 'name', 'icon', 'display_order', 'is_active', 'service_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_service_count(self, obj):
        return Service.objects.filter(category=obj.key).count()


class GarmentTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = GarmentType
        fields = ['id', 'code', 'name', 'category', 'icon', 'is_common', 'is_active', 'is_custom', 'created_at']
        read_only_fields = ['created_at']


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = [
            'id', 'code', 'name', 'description', 'base_price_cents', 'category', 'unit',
            'estimated_minutes', 'is_custom', 'display_order', 'is_active',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_category(self, value):
        if value and not Category.objects.filter(key=value).exists():
            raise serializers.ValidationError(f"Unknown category '{value}'")
        return value


class MoveCategorySerializer(serializers.Serializer):
    from_category = serializers.CharField()
    to_category = serializers.CharField()

    def validate_to_category(self, value):
        if not Category.objects.filter(key=value).exists():
            raise serializers.ValidationError(f"Unknown category '{value}'")
        return value


class ServiceImportRowSerializer(serializers.Serializer):
    """One row of a price list import"""
    name = serializers.CharField(max_length=200)
    category = serializers.CharField(max_length=50)
    base_price_cents = serializers.IntegerField(min_value=0)
    code = serializers.CharField(max_length=50, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    estimated_minutes = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    is_custom = serializers.BooleanField(required=False, default=False)
