from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Portal user; customers are users too (quotations reference them)"""
    ROLE_ADMIN = 'admin'
    ROLE_EVM_STAFF = 'evm_staff'
    ROLE_DEALER_STAFF = 'dealer_staff'
    ROLE_CUSTOMER = 'customer'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_EVM_STAFF, 'EVM Staff'),
        (ROLE_DEALER_STAFF, 'Dealer Staff'),
        (ROLE_CUSTOMER, 'Customer'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    phone = models.CharField(max_length=20, blank=True, null=True)
    dealer_code = models.CharField(max_length=50, blank=True, null=True, help_text="Dealer the staff member belongs to")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_sales_staff(self):
        return self.is_superuser or self.role in (self.ROLE_ADMIN, self.ROLE_EVM_STAFF, self.ROLE_DEALER_STAFF)

    @property
    def is_evm_staff(self):
        return self.is_superuser or self.role in (self.ROLE_ADMIN, self.ROLE_EVM_STAFF)

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for sales-critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('status_change', 'Status Change'),
        ('quotation_convert', 'Quotation Converted'),
        ('inventory_update', 'Inventory Updated'),
        ('inventory_dispatch', 'Inventory Dispatched'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., quotation id for an order)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
        ]
