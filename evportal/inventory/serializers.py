from rest_framework import serializers
from .models import InventoryRecord, InventoryDispatch


class InventoryRecordSerializer(serializers.ModelSerializer):
    inventoryId = serializers.IntegerField(source='id', read_only=True)
    vehicleId = serializers.IntegerField(source='vehicle_id', read_only=True)
    model = serializers.CharField(source='vehicle.model', read_only=True)
    version = serializers.CharField(source='vehicle.version', read_only=True)
    color = serializers.CharField(source='vehicle.color', read_only=True)
    price = serializers.DecimalField(source='vehicle.price', max_digits=15, decimal_places=2, read_only=True)
    status = serializers.CharField(source='derived_status', read_only=True)
    available = serializers.SerializerMethodField()
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = InventoryRecord
        fields = ['inventoryId', 'vehicleId', 'model', 'version', 'color', 'price', 'quantity', 'status', 'available', 'updatedAt']

    def get_available(self, obj):
        return obj.quantity > 0


class InventoryDispatchSerializer(serializers.ModelSerializer):
    dispatchId = serializers.IntegerField(source='id', read_only=True)
    vehicleId = serializers.IntegerField(source='vehicle_id', read_only=True)
    dealerId = serializers.IntegerField(source='dealer_id', read_only=True)
    dispatchedBy = serializers.PrimaryKeyRelatedField(source='dispatched_by', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = InventoryDispatch
        fields = ['dispatchId', 'vehicleId', 'dealerId', 'color', 'quantity', 'dispatchedBy', 'createdAt']
