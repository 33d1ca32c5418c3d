from rest_framework import serializers
from evportal.catalog.models import Vehicle
from evportal.core.models import User
from .models import Quotation, Order


class QuotationSerializer(serializers.ModelSerializer):
    """
    Wire format of a quotation (camelCase, as the portal front-end expects).

    ``finalPrice`` is always computed by the server and ``status`` is only
    interpreted by the lifecycle rules in ``services``; on create it is
    ignored and the quotation starts PENDING.
    """
    quotationId = serializers.IntegerField(source='id', read_only=True)
    userId = serializers.PrimaryKeyRelatedField(source='user', queryset=User.objects.all())
    vehicleId = serializers.PrimaryKeyRelatedField(source='vehicle', queryset=Vehicle.objects.all())
    quotationDate = serializers.DateTimeField(source='quotation_date', required=False)
    color = serializers.CharField(max_length=50, required=False, allow_blank=True)
    basePrice = serializers.DecimalField(source='base_price', max_digits=15, decimal_places=2, min_value=0)
    discount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=0, required=False)
    finalPrice = serializers.DecimalField(source='final_price', max_digits=15, decimal_places=2, read_only=True)
    promotionCode = serializers.CharField(source='promotion_code', max_length=50, required=False, allow_blank=True, allow_null=True)
    promotionOptionName = serializers.CharField(source='promotion_option_name', max_length=200, required=False, allow_blank=True, allow_null=True)
    status = serializers.CharField(max_length=20, required=False, allow_blank=True)
    attachmentImage = serializers.CharField(source='attachment_image', max_length=500, required=False, allow_blank=True, allow_null=True)
    attachmentFile = serializers.CharField(source='attachment_file', max_length=500, required=False, allow_blank=True, allow_null=True)
    version = serializers.IntegerField(required=False, min_value=1)
    hasOrder = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Quotation
        fields = [
            'quotationId', 'userId', 'vehicleId', 'quotationDate', 'color', 'basePrice', 'discount', 'finalPrice',
            'promotionCode', 'promotionOptionName', 'status', 'attachmentImage', 'attachmentFile', 'version',
            'hasOrder', 'createdAt', 'updatedAt',
        ]

    def get_hasOrder(self, obj):
        return obj.pk is not None and obj.has_order

    def validate_basePrice(self, value):
        if value <= 0:
            raise serializers.ValidationError('Base price must be greater than 0.')
        return value

    def validate(self, attrs):
        for field in ('promotion_code', 'promotion_option_name', 'attachment_image', 'attachment_file'):
            if field in attrs and attrs[field] is None:
                attrs[field] = ''
        if 'promotion_code' in attrs:
            attrs['promotion_code'] = attrs['promotion_code'].strip()

        base_price = attrs.get('base_price', getattr(self.instance, 'base_price', None))
        discount = attrs.get('discount', getattr(self.instance, 'discount', None))
        if base_price is not None and discount is not None and discount > base_price:
            raise serializers.ValidationError({'discount': 'Discount cannot exceed the base price.'})
        return attrs


class OrderSerializer(serializers.ModelSerializer):
    orderId = serializers.IntegerField(source='id', read_only=True)
    quotationId = serializers.IntegerField(source='quotation_id', read_only=True)
    userId = serializers.IntegerField(source='user_id', read_only=True)
    vehicleId = serializers.IntegerField(source='vehicle_id', read_only=True)
    orderDate = serializers.DateTimeField(source='order_date', read_only=True)
    deliveryAddress = serializers.CharField(source='delivery_address', read_only=True)
    promotionCode = serializers.CharField(source='promotion_code', read_only=True)
    promotionOptionName = serializers.CharField(source='promotion_option_name', read_only=True)
    quotationPrice = serializers.DecimalField(source='quotation_price', max_digits=15, decimal_places=2, read_only=True)
    finalPrice = serializers.DecimalField(source='final_price', max_digits=15, decimal_places=2, read_only=True)
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=15, decimal_places=2, read_only=True)
    attachmentImage = serializers.CharField(source='attachment_image', read_only=True)
    attachmentFile = serializers.CharField(source='attachment_file', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Order
        fields = [
            'orderId', 'quotationId', 'userId', 'vehicleId', 'color', 'orderDate', 'deliveryAddress', 'status',
            'promotionCode', 'promotionOptionName', 'quotationPrice', 'finalPrice', 'totalAmount',
            'attachmentImage', 'attachmentFile', 'createdAt',
        ]
        read_only_fields = ['color', 'status']


class CreateOrderSerializer(serializers.Serializer):
    """Conversion request; pricing and parties always come from the quotation"""
    quotationId = serializers.IntegerField(min_value=1)
    deliveryAddress = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    attachmentImage = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    attachmentFile = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)


class UpdateOrderSerializer(serializers.Serializer):
    deliveryAddress = serializers.CharField(source='delivery_address', max_length=500, required=False, allow_blank=True)
    attachmentImage = serializers.CharField(source='attachment_image', max_length=500, required=False, allow_blank=True, allow_null=True)
    attachmentFile = serializers.CharField(source='attachment_file', max_length=500, required=False, allow_blank=True, allow_null=True)
    status = serializers.CharField(max_length=20, required=False, allow_blank=True)
