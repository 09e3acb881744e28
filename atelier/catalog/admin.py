from django.contrib import admin
from .models import Category, GarmentType, Service


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['key', 'name', 'icon', 'display_order', 'is_active']
    list_filter = ['is_active']
    search_fields = ['key', 'name']
    ordering = ['display_order', 'name']


@admin.register(GarmentType)
class GarmentTypeAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'category', 'is_common', 'is_custom', 'is_active']
    list_filter = ['category', 'is_common', 'is_custom', 'is_active']
    search_fields = ['code', 'name']


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'category', 'base_price_cents', 'estimated_minutes', 'is_custom', 'is_active']
    list_filter = ['category', 'is_custom', 'is_active']
    search_fields = ['code', 'name', 'description']
    ordering = ['category', 'display_order', 'name']
