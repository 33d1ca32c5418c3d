from django.contrib import admin
from .models import InventoryRecord, InventoryDispatch


@admin.register(InventoryRecord)
class InventoryRecordAdmin(admin.ModelAdmin):
    list_display = ['vehicle', 'quantity', 'status', 'updated_at']
    list_filter = ['status', 'updated_at']
    search_fields = ['vehicle__model', 'vehicle__version']
    readonly_fields = ['status', 'updated_at']


@admin.register(InventoryDispatch)
class InventoryDispatchAdmin(admin.ModelAdmin):
    list_display = ['vehicle', 'dealer_id', 'color', 'quantity', 'dispatched_by', 'created_at']
    list_filter = ['dealer_id', 'created_at']
    search_fields = ['vehicle__model', 'color']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
