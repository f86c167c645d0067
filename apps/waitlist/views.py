import logging

from django.db.models import Q
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsSiteAdmin
from .models import WaitlistEntry
from .serializers import WaitlistEntrySerializer, WaitlistJoinSerializer, WaitlistRespondSerializer
from .services import (
    ACCEPT,
    join_waitlist,
    get_position,
    notify_entry,
    get_offer,
    respond_to_offer,
    WaitlistNotFoundError,
    WaitlistStateError,
    OfferExpiredError,
)

logger = logging.getLogger(__name__)


class WaitlistView(APIView):
    """
    Public waitlist.

    POST joins the waitlist of a sold-out retreat or room.
    GET returns the live position for ``retreatId`` and ``email``.
    """

    permission_classes = [AllowAny]
    throttle_scope = 'waitlist'

    def get_throttles(self):
        if self.request.method == 'POST':
            return [ScopedRateThrottle()]
        return []

    @extend_schema(request=WaitlistJoinSerializer, tags=['waitlist'])
    def post(self, request):
        serializer = WaitlistJoinSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = join_waitlist(
                retreat_id=data['retreatId'],
                room_id=data.get('roomId'),
                first_name=data['firstName'],
                last_name=data['lastName'],
                email=data['email'],
                phone=data['phone'],
                guests_count=data['guestsCount'],
                notes=data['notes'],
            )
        except WaitlistNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except WaitlistStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                'data': {'position': result.entry.position, 'status': result.entry.status},
                'message': result.message,
            },
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )

    @extend_schema(
        parameters=[
            OpenApiParameter('retreatId', str, required=True),
            OpenApiParameter('email', str, required=True),
        ],
        tags=['waitlist'],
    )
    def get(self, request):
        retreat_id = request.query_params.get('retreatId')
        email = request.query_params.get('email')
        if not retreat_id or not email:
            return Response({'error': 'retreatId and email are required'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            queue = get_position(retreat_id=retreat_id, email=email)
        except WaitlistNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response({'data': {'position': queue.position, 'status': queue.status}})


class WaitlistRespondView(APIView):
    """Accept or decline a spot offer from the emailed link."""

    permission_classes = [AllowAny]

    @extend_schema(parameters=[OpenApiParameter('token', str, required=True)], tags=['waitlist'])
    def get(self, request):
        token = request.query_params.get('token')
        if not token:
            return Response({'error': 'Token is required'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            entry = get_offer(token=token)
        except WaitlistNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        is_expired = entry.offer_expired
        return Response({'data': {
            'status': WaitlistEntry.Status.EXPIRED if is_expired and entry.status == WaitlistEntry.Status.NOTIFIED else entry.status,
            'isExpired': is_expired,
            'firstName': entry.first_name,
            'retreatDestination': entry.retreat.destination,
            'expiresAt': entry.notification_expires_at,
            'roomName': entry.room.name if entry.room else None,
            'roomPrice': entry.room.price if entry.room else None,
        }})

    @extend_schema(request=WaitlistRespondSerializer, tags=['waitlist'])
    def post(self, request):
        serializer = WaitlistRespondSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': 'Invalid request. Token and action (accept/decline) are required.'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        data = serializer.validated_data

        try:
            url = respond_to_offer(token=data['token'], action=data['action'])
        except WaitlistNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except WaitlistStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except OfferExpiredError as e:
            return Response({'error': str(e)}, status=status.HTTP_410_GONE)

        if data['action'] == ACCEPT:
            return Response({
                'data': {'bookingUrl': url},
                'message': 'You have accepted the offer! Please complete your booking.',
            })
        return Response({
            'data': {'declined': True},
            'message': 'You have declined the offer. We hope to see you on a future retreat!',
        })


class WaitlistAdminViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Waitlist management for admins.

    Filters: retreat, status, search (name or email).
    """

    serializer_class = WaitlistEntrySerializer
    permission_classes = [IsSiteAdmin]

    def get_queryset(self):
        queryset = WaitlistEntry.objects.select_related('retreat', 'room')
        params = self.request.query_params

        retreat = params.get('retreat')
        if retreat:
            queryset = queryset.filter(retreat_id=retreat)
        entry_status = params.get('status')
        if entry_status:
            queryset = queryset.filter(status=entry_status)
        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(email__icontains=search) | Q(first_name__icontains=search) | Q(last_name__icontains=search)
            )
        return queryset.order_by('retreat__start_date', 'position')

    @action(detail=True, methods=['post'])
    def notify(self, request, pk=None):
        """Offer a freed spot; the customer has 72 hours to respond."""
        try:
            offer = notify_entry(entry_id=pk)
        except WaitlistNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except WaitlistStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        entry = offer.entry
        return Response({
            'data': {
                'notifiedAt': entry.notified_at,
                'expiresAt': entry.notification_expires_at,
                'email': entry.email,
                'depositPercentage': offer.deposit_percent,
                'depositAmount': offer.deposit_amount,
            },
            'message': f"Notification sent to {entry.email}. They have 72 hours to respond.",
        })
