from django.contrib import admin
from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'phone', 'email', 'language', 'preferred_contact', 'created_at']
    list_filter = ['language', 'preferred_contact', 'newsletter_consent']
    search_fields = ['first_name', 'last_name', 'phone', 'email']
    ordering = ['last_name', 'first_name']
