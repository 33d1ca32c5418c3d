from django.utils import timezone
from rest_framework import serializers
from .models import Promotion
from .validators import is_active


class PromotionSerializer(serializers.ModelSerializer):
    promotionId = serializers.IntegerField(source='id', read_only=True)
    userId = serializers.PrimaryKeyRelatedField(source='user', read_only=True)
    promotionCode = serializers.CharField(source='promotion_code', max_length=50)
    optionName = serializers.CharField(source='option_name', max_length=200)
    optionValue = serializers.DecimalField(source='option_value', max_digits=15, decimal_places=2, min_value=0)
    startDate = serializers.DateField(source='start_date')
    endDate = serializers.DateField(source='end_date')
    isActive = serializers.SerializerMethodField()

    class Meta:
        model = Promotion
        fields = ['promotionId', 'userId', 'promotionCode', 'optionName', 'optionValue', 'startDate', 'endDate', 'isActive']

    def get_isActive(self, obj):
        return is_active(obj, timezone.localdate())

    def validate_promotionCode(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Promotion code cannot be blank.')
        return value

    def validate(self, attrs):
        code = attrs.get('promotion_code', getattr(self.instance, 'promotion_code', None))
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))

        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({'endDate': 'End date must be on or after the start date.'})

        # No two promotions may share a code with overlapping active windows
        overlapping = Promotion.objects.overlapping(code, start_date, end_date)
        if self.instance is not None:
            overlapping = overlapping.exclude(pk=self.instance.pk)
        if overlapping.exists():
            raise serializers.ValidationError({
                'promotionCode': f"Promotion code '{code}' is already used by a promotion active in the same period."
            })
        return attrs
