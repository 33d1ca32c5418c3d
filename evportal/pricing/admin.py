from django.contrib import admin
from .models import Promotion


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ['promotion_code', 'option_name', 'option_value', 'start_date', 'end_date', 'user', 'created_at']
    list_filter = ['start_date', 'end_date', 'created_at']
    search_fields = ['promotion_code', 'option_name']
    ordering = ['-start_date']
    readonly_fields = ['created_at', 'updated_at']
