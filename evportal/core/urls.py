from django.urls import path
from .views import CustomTokenObtainPairView, CustomTokenRefreshView, user_me, audit_log_list

urlpatterns = [
    # Auth endpoints
    path('Auth/login', CustomTokenObtainPairView.as_view(), name='token-obtain-pair'),
    path('Auth/refresh', CustomTokenRefreshView.as_view(), name='token-refresh'),
    path('Auth/me', user_me, name='user-me'),

    # AuditLog endpoints
    path('AuditLog', audit_log_list, name='audit-log-list'),
]
