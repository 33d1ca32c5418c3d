"""Database-backed promotion lookups built on the pure validators"""
from django.utils import timezone

from .models import Promotion
from . import validators


def current_promotions(now=None):
    """Promotions active today, oldest window first so the earliest match wins"""
    now = now or timezone.now()
    return list(Promotion.objects.active(now).order_by('start_date', 'id'))


def lookup_promotion(code, now=None):
    """Active promotion for ``code`` or None (empty code is None too)"""
    now = now or timezone.now()
    if not validators.normalize_code(code):
        return None
    candidates = Promotion.objects.active(now).with_code(code).order_by('start_date', 'id')
    return validators.validate(code, candidates, timezone.localtime(now))


def require_promotion(code, now=None):
    """Active promotion for a non-empty ``code``; raises ValidationError when there is none"""
    now = now or timezone.now()
    if not validators.normalize_code(code):
        return None
    candidates = Promotion.objects.active(now).with_code(code).order_by('start_date', 'id')
    return validators.require_valid_promotion(code, candidates, timezone.localtime(now))
