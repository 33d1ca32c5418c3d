from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from django.shortcuts import get_object_or_404
from django.utils import timezone
from evportal.core.cache_utils import get_cached_active_promotions, cache_active_promotions
from evportal.core.permissions import IsSalesStaff
from evportal.core.utils import create_audit_log, envelope, request_object
from .models import Promotion
from .serializers import PromotionSerializer
from .services import current_promotions, require_promotion


@api_view(['GET', 'POST'])
@permission_classes([IsSalesStaff])
def promotion_list_create(request):
    """List all promotions or create a new promotion"""
    if request.method == 'GET':
        promotions = Promotion.objects.all()
        code = request.query_params.get('code')
        if code:
            promotions = promotions.with_code(code)
        serializer = PromotionSerializer(promotions, many=True)
        return envelope(serializer.data)
    else:  # POST
        serializer = PromotionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        promotion = serializer.save(user=request.user)
        create_audit_log(
            request=request,
            action='create',
            model_name='Promotion',
            object_id=promotion.id,
            object_reference=promotion.promotion_code,
            changes=_promotion_changes(promotion),
        )
        return envelope(PromotionSerializer(promotion).data, message='Promotion created successfully', status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsSalesStaff])
def promotion_detail(request, pk):
    """Retrieve, update or delete a promotion"""
    promotion = get_object_or_404(Promotion, pk=pk)

    if request.method == 'GET':
        return envelope(PromotionSerializer(promotion).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PromotionSerializer(promotion, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()
        create_audit_log(
            request=request,
            action='update',
            model_name='Promotion',
            object_id=promotion.id,
            object_reference=promotion.promotion_code,
            changes=_promotion_changes(promotion),
        )
        return envelope(serializer.data, message='Promotion updated successfully')
    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='Promotion',
            object_id=promotion.id,
            object_reference=promotion.promotion_code,
        )
        promotion.delete()
        return envelope(message='Promotion deleted successfully')


@api_view(['GET'])
@permission_classes([IsSalesStaff])
def promotion_active(request):
    """Promotions active today (cached per day)"""
    today = timezone.localdate()
    data, cache_key = get_cached_active_promotions(today)
    if data is None:
        data = PromotionSerializer(current_promotions(), many=True).data
        cache_active_promotions(cache_key, data)
    return envelope(data)


@api_view(['POST'])
@permission_classes([IsSalesStaff])
def promotion_validate(request):
    """Check a promotion code against today's active promotions"""
    code = request_object(request).get('promotionCode', '')
    promotion = require_promotion(code)
    if promotion is None:
        return envelope(None, message='No promotion code supplied')
    return envelope(PromotionSerializer(promotion).data, message='Promotion code is valid')


def _promotion_changes(promotion):
    return {
        'promotionCode': promotion.promotion_code,
        'optionName': promotion.option_name,
        'optionValue': str(promotion.option_value),
        'startDate': promotion.start_date.isoformat(),
        'endDate': promotion.end_date.isoformat(),
    }
