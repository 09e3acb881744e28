"""
Signals for cache invalidation of the service catalog
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from atelier.core.cache_utils import invalidate_services_cache
from .models import Category, Service
import logging

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Service)
@receiver([post_save, post_delete], sender=Category)
def invalidate_catalog_cache(sender, instance, **kwargs):
    """Drop cached service lists when services or categories change"""
    try:
        invalidate_services_cache()
    except Exception as e:
        logger.warning(f"Error invalidating services cache for {sender.__name__} {instance.pk}: {e}")
