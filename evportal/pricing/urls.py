from django.urls import path
from .views import promotion_list_create, promotion_detail, promotion_active, promotion_validate

urlpatterns = [
    # Promotion endpoints
    path('Promotion', promotion_list_create, name='promotion-list-create'),
    path('Promotion/active', promotion_active, name='promotion-active'),
    path('Promotion/validate', promotion_validate, name='promotion-validate'),
    path('Promotion/<int:pk>', promotion_detail, name='promotion-detail'),
]
