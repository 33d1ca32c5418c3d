from django.contrib import admin
from .models import Quotation, Order


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'vehicle', 'final_price', 'promotion_code', 'status', 'quotation_date']
    list_filter = ['status', 'quotation_date']
    search_fields = ['user__username', 'vehicle__model', 'promotion_code']
    ordering = ['-quotation_date']
    # Status changes go through the API so transitions are enforced
    readonly_fields = ['status', 'final_price', 'version', 'created_by', 'created_at', 'updated_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'quotation', 'user', 'vehicle', 'total_amount', 'status', 'order_date']
    list_filter = ['status', 'order_date']
    search_fields = ['user__username', 'vehicle__model', 'delivery_address']
    ordering = ['-order_date']
    readonly_fields = ['quotation', 'quotation_price', 'final_price', 'total_amount', 'created_by', 'created_at']
