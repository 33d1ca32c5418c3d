from rest_framework import serializers
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='id', read_only=True)

    class Meta:
        model = User
        fields = ['userId', 'username', 'email', 'first_name', 'last_name', 'phone', 'role', 'dealer_code', 'is_active', 'created_at']
        read_only_fields = ['created_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_reference', 'changes', 'ip_address', 'created_at']
