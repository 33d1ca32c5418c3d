"""
URL configuration for the EV dealer portal backend.

Paths mirror the REST resources the dealer/EVM staff portal consumes
(``/api/Quotation``, ``/api/SaleManagement/...``, ``/api/Promotion``,
``/api/Inventory``).
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "EV Dealer Portal Admin"
admin.site.site_title = "EV Dealer Portal Admin"
admin.site.index_title = "Sales, promotions and inventory"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('evportal.core.urls')),
    path('api/', include('evportal.pricing.urls')),
    path('api/', include('evportal.inventory.urls')),
    path('api/', include('evportal.sales.urls')),
]
