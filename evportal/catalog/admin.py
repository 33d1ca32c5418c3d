from django.contrib import admin
from .models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['model', 'version', 'color', 'price', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['model', 'version', 'color']
    ordering = ['model', 'version']
    readonly_fields = ['created_at', 'updated_at']
