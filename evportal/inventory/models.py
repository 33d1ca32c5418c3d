from django.db import models
from evportal.catalog.models import Vehicle


class InventoryRecord(models.Model):
    """Available quantity of a vehicle; quantity is the source of truth for availability"""
    STATUS_CHOICES = [
        ('available', 'Available'),
        ('out_of_stock', 'Out of Stock'),
    ]

    vehicle = models.OneToOneField(Vehicle, on_delete=models.CASCADE, related_name='inventory')
    quantity = models.PositiveIntegerField(default=0)
    # Legacy stored flag, kept in sync on write but never read for availability
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='out_of_stock')
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def derived_status(self):
        return 'available' if self.quantity > 0 else 'out_of_stock'

    def save(self, *args, **kwargs):
        self.status = self.derived_status
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.vehicle} x{self.quantity}"

    class Meta:
        db_table = 'inventory'


class InventoryDispatch(models.Model):
    """Vehicles sent from manufacturer inventory to a dealer"""
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='dispatches')
    dealer_id = models.PositiveIntegerField()
    color = models.CharField(max_length=50)
    quantity = models.PositiveIntegerField()
    dispatched_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, related_name='inventory_dispatches')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'inventory_dispatches'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['dealer_id', '-created_at'], name='idx_dispatch_dealer_created'),
        ]
