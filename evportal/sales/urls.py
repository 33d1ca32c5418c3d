from django.urls import path
from .views import (
    create_quotation, quotation_list_create, quotation_detail,
    create_order, order_list, order_detail,
)

urlpatterns = [
    # Sale management (portal workflow endpoints)
    path('SaleManagement/CreateQuotation', create_quotation, name='sale-create-quotation'),
    path('SaleManagement/CreateOrder', create_order, name='sale-create-order'),

    # Quotation endpoints
    path('Quotation', quotation_list_create, name='quotation-list-create'),
    path('Quotation/<int:pk>', quotation_detail, name='quotation-detail'),

    # Order endpoints
    path('Order', order_list, name='order-list'),
    path('Order/<int:pk>', order_detail, name='order-detail'),
]
