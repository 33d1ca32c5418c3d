from django.urls import path
from .views import inventory_list, inventory_detail, inventory_update, inventory_create, inventory_dispatch

urlpatterns = [
    # Inventory endpoints
    path('Inventory', inventory_list, name='inventory-list'),
    path('Inventory/dispatch', inventory_dispatch, name='inventory-dispatch'),
    path('Inventory/<int:vehicle_id>', inventory_detail, name='inventory-detail'),
    path('Inventory/<int:vehicle_id>/update', inventory_update, name='inventory-update'),
    path('Inventory/<int:vehicle_id>/create', inventory_create, name='inventory-create'),
]
