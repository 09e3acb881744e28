from django.db import models


class Category(models.Model):
    """Service category shown as a tab at intake"""
    key = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=100)
    icon = models.CharField(max_length=20, blank=True)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        ordering = ['display_order', 'name']
        verbose_name_plural = 'Categories'


class GarmentType(models.Model):
    """Kind of garment (pants, dress, suit jacket...)"""
    code = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=100)
    category = models.CharField(max_length=50, blank=True)
    icon = models.CharField(max_length=20, blank=True)
    is_common = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    is_custom = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'garment_types'
        ordering = ['-is_common', 'name']


class Service(models.Model):
    """Priced service offered by the shop"""
    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    base_price_cents = models.PositiveIntegerField(default=0)
    # Category key (see Category.key)
    category = models.CharField(max_length=50, blank=True, null=True)
    unit = models.CharField(max_length=20, blank=True, null=True)
    estimated_minutes = models.PositiveIntegerField(null=True, blank=True)
    is_custom = models.BooleanField(default=False)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'services'
        ordering = ['category', 'display_order', 'name']
        indexes = [
            models.Index(fields=['category'], name='services_category_idx'),
        ]
