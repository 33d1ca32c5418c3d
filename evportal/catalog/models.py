from django.db import models
from decimal import Decimal


class Vehicle(models.Model):
    """Vehicle catalog entry (only the fields the sales workflow touches)"""
    STATUS_AVAILABLE = 'available'
    STATUS_OUT_OF_STOCK = 'out_of_stock'
    STATUS_DISCONTINUED = 'discontinued'

    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_OUT_OF_STOCK, 'Out of Stock'),
        (STATUS_DISCONTINUED, 'Discontinued'),
    ]

    model = models.CharField(max_length=200, db_index=True)
    version = models.CharField(max_length=100, blank=True)
    color = models.CharField(max_length=50, blank=True)
    price = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    # Legacy stored availability; only read when the vehicle has no inventory record
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.model} {self.version}".strip()

    class Meta:
        db_table = 'vehicles'
        ordering = ['model', 'version']
