from django.db import models
from django.utils import timezone
from decimal import Decimal
from evportal.catalog.models import Vehicle
from evportal.core.models import User
from .lifecycle import QuotationStatus, INITIAL_STATUS


class Quotation(models.Model):
    """Priced offer for a vehicle, subject to staff approval before it can become an order"""
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='quotations', help_text="Customer")
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name='quotations')
    quotation_date = models.DateTimeField(default=timezone.now)
    color = models.CharField(max_length=50, blank=True)
    base_price = models.DecimalField(max_digits=15, decimal_places=2)
    discount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    final_price = models.DecimalField(max_digits=15, decimal_places=2)
    promotion_code = models.CharField(max_length=50, blank=True)
    promotion_option_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=QuotationStatus.choices, default=INITIAL_STATUS)
    attachment_image = models.CharField(max_length=500, blank=True)
    attachment_file = models.CharField(max_length=500, blank=True)
    # Optimistic concurrency token, bumped on every write
    version = models.PositiveIntegerField(default=1)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_quotations')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Quotation-{self.id}"

    def compute_final_price(self):
        return self.base_price - self.discount

    @property
    def has_order(self):
        return Order.objects.filter(quotation_id=self.pk).exists()

    class Meta:
        db_table = 'quotations'
        ordering = ['-quotation_date', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_quotation_status'),
            models.Index(fields=['user', 'status'], name='idx_quotation_user_status'),
        ]


class Order(models.Model):
    """Confirmed purchase created from an approved quotation"""
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        CONFIRMED = 'CONFIRMED', 'Confirmed'
        DELIVERED = 'DELIVERED', 'Delivered'
        CANCELLED = 'CANCELLED', 'Cancelled'

    # One order per quotation; PROTECT keeps a converted quotation from being deleted
    quotation = models.OneToOneField(Quotation, on_delete=models.PROTECT, related_name='order')
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='orders', help_text="Customer")
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name='orders')
    color = models.CharField(max_length=50, blank=True)
    order_date = models.DateTimeField(default=timezone.now)
    delivery_address = models.CharField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    promotion_code = models.CharField(max_length=50, blank=True)
    promotion_option_name = models.CharField(max_length=200, blank=True)
    quotation_price = models.DecimalField(max_digits=15, decimal_places=2)
    final_price = models.DecimalField(max_digits=15, decimal_places=2)
    total_amount = models.DecimalField(max_digits=15, decimal_places=2)
    attachment_image = models.CharField(max_length=500, blank=True)
    attachment_file = models.CharField(max_length=500, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_orders')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Order-{self.id}"

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_order_status'),
        ]
