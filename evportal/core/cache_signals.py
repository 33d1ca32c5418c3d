"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from django.utils import timezone
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_active_promotions_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk imports of promotions.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_promotions_cache(sender, instance, **kwargs):
    """Invalidate active promotions cache when promotions change"""
    if is_suspended():
        return

    from evportal.pricing.models import Promotion

    if not isinstance(instance, Promotion):
        return

    # Invalidate AFTER the commit so a concurrent read cannot re-cache stale rows
    def invalidate_after_commit():
        invalidate_active_promotions_cache(timezone.localdate())

    transaction.on_commit(invalidate_after_commit)
