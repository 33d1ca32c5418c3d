from django.db import models
from django.db.models import Q
from django.utils import timezone
from decimal import Decimal
from evportal.core.models import User


class PromotionQuerySet(models.QuerySet):
    def active(self, now=None):
        """Promotions whose [start_date, end_date] window contains today (inclusive)"""
        today = timezone.localdate(now) if now is not None else timezone.localdate()
        return self.filter(start_date__lte=today, end_date__gte=today)

    def with_code(self, code):
        return self.filter(promotion_code__iexact=(code or '').strip())

    def overlapping(self, code, start_date, end_date):
        """Same code (case-insensitive) with a window intersecting [start_date, end_date]"""
        return self.with_code(code).filter(Q(start_date__lte=end_date) & Q(end_date__gte=start_date))


class Promotion(models.Model):
    """Time-bounded discount identified by a human-entered code"""
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='promotions')
    promotion_code = models.CharField(max_length=50, db_index=True)
    option_name = models.CharField(max_length=200)
    option_value = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    start_date = models.DateField()
    end_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PromotionQuerySet.as_manager()

    def __str__(self):
        return f"{self.promotion_code} ({self.option_name})"

    class Meta:
        db_table = 'promotions'
        ordering = ['-start_date', 'promotion_code']
        indexes = [
            models.Index(fields=['start_date', 'end_date'], name='idx_promotion_window'),
        ]
