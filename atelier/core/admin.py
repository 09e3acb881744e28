from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Setting, EventLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'role', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'is_superuser', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Shop', {'fields': ('role', 'phone')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Shop', {'fields': ('role', 'phone')}),
    )


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(EventLog)
class EventLogAdmin(admin.ModelAdmin):
    list_display = ['entity', 'entity_id', 'action', 'actor', 'correlation_id', 'created_at']
    list_filter = ['entity', 'action', 'created_at']
    search_fields = ['entity_id', 'action', 'correlation_id', 'actor__username']
    ordering = ['-created_at']
    readonly_fields = ['entity', 'entity_id', 'action', 'details', 'actor', 'correlation_id', 'ip_address', 'created_at']
