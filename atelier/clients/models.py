from django.db import models


class Client(models.Model):
    """Shop client"""
    CONTACT_CHOICES = [
        ('sms', 'SMS'),
        ('email', 'Email'),
    ]

    LANGUAGE_CHOICES = [
        ('fr', 'French'),
        ('en', 'English'),
    ]

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    preferred_contact = models.CharField(max_length=10, choices=CONTACT_CHOICES, default='sms')
    newsletter_consent = models.BooleanField(default=False)
    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default='fr')
    ghl_contact_id = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return self.full_name

    class Meta:
        db_table = 'clients'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['phone'], name='clients_phone_idx'),
            models.Index(fields=['email'], name='clients_email_idx'),
        ]
