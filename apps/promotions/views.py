from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.throttling import ScopedRateThrottle
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsSiteAdmin
from apps.retreats.models import Retreat, RetreatRoom
from .models import PromoCode
from .serializers import (
    PromoCodeSerializer,
    PromoCodeRedemptionSerializer,
    PromoCodeStatsSerializer,
    PromoValidateInputSerializer,
)
from .services import (
    validate_promo_code,
    resolve_booking_discount,
    get_promo_code_stats,
    PromoCodeInvalidError,
)


class PromoCodeViewSet(viewsets.ModelViewSet):
    """Promo code management for admins."""

    serializer_class = PromoCodeSerializer
    permission_classes = [IsSiteAdmin]

    def get_queryset(self):
        queryset = PromoCode.objects.select_related('created_by', 'retreat', 'room')
        active = self.request.query_params.get('active')
        if active in ('true', 'false'):
            queryset = queryset.filter(is_active=active == 'true')
        return queryset

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    @extend_schema(responses={200: PromoCodeStatsSerializer})
    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        """Redemption totals and the latest redemptions."""
        promo = self.get_object()
        data = PromoCodeStatsSerializer(get_promo_code_stats(promo=promo)).data
        data['redemptions'] = PromoCodeRedemptionSerializer(
            promo.redemptions.select_related('booking')[:50], many=True
        ).data
        return Response(data)


class ValidatePromoView(APIView):
    """Check a promo code for the booking form. Invalid codes return 200 with valid=false."""

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'promo'

    @extend_schema(
        request=PromoValidateInputSerializer,
        description="Validate a promo code and compare it with the early-bird discount.",
        tags=['promotions'],
    )
    def post(self, request):
        serializer = PromoValidateInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'valid': False, 'error': 'Missing required fields: code, retreatId, orderAmount'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        data = serializer.validated_data

        try:
            promo = validate_promo_code(
                code=data['code'],
                retreat_id=data['retreatId'],
                room_id=data.get('roomId'),
                order_amount=data['orderAmount'],
            )
        except PromoCodeInvalidError as e:
            return Response({'valid': False, 'error': str(e)})

        room = None
        if data.get('roomId'):
            room = RetreatRoom.objects.filter(id=data['roomId'], retreat_id=data['retreatId']).first()
        retreat = Retreat.objects.filter(id=data['retreatId']).first()
        retreat_start = data.get('retreatStartDate') or (retreat.start_date if retreat else None)

        if room is not None:
            result = resolve_booking_discount(
                base_price=data['orderAmount'],
                retreat_start=retreat_start,
                early_bird_enabled=room.early_bird_enabled,
                early_bird_deadline=room.early_bird_deadline,
                promo=promo,
            )
        else:
            result = resolve_booking_discount(
                base_price=data['orderAmount'],
                retreat_start=retreat_start,
                early_bird_enabled=data.get('earlyBirdEnabled', False),
                early_bird_deadline=data.get('earlyBirdDeadline'),
                promo=promo,
            )

        return Response({
            'valid': True,
            'promoCode': {
                'code': promo.code,
                'discountType': promo.discount_type,
                'discountValue': promo.discount_value,
                'description': promo.description,
            },
            'discount': {
                'amount': result.amount,
                'source': result.source,
                'promoDiscount': result.promo_discount,
                'earlyBirdDiscount': result.early_bird_discount,
                'isEarlyBirdEligible': result.is_early_bird_eligible,
                'appliedDiscount': result.source,
                'message': result.message,
            },
            'finalAmount': data['orderAmount'] - result.amount,
        })
