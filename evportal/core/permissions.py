from rest_framework.permissions import BasePermission


class IsSalesStaff(BasePermission):
    """Dealer staff, EVM staff and admins"""
    message = 'Only dealer or EVM staff can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_sales_staff)


class IsEVMStaff(BasePermission):
    """EVM (manufacturer) staff and admins"""
    message = 'Only EVM staff can change inventory.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_evm_staff)
