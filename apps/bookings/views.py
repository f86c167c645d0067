import logging

from django.db.models import Q
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsSiteAdmin
from apps.payments.serializers import PaymentSerializer
from apps.payments.services import (
    create_payment_link,
    retry_payment,
    create_customer_portal_url,
    ScheduleNotPayableError,
    PaymentGatewayError,
)
from .models import Booking
from .serializers import (
    BookingListSerializer,
    BookingDetailSerializer,
    MyBookingSerializer,
    CancelBookingSerializer,
    RestoreBookingSerializer,
    BookingStatusSerializer,
    AssignRoomSerializer,
    PaymentLinkSerializer,
    RetryPaymentSerializer,
)
from .services import (
    cancel_booking,
    restore_booking,
    change_booking_status,
    assign_room,
    get_booking_by_access_token,
    BookingStateError,
    RoomAssignmentError,
    RoomCapacityError,
    AccessTokenInvalidError,
    AccessTokenExpiredError,
)

logger = logging.getLogger(__name__)


class BookingPagination(PageNumberPagination):
    """Custom pagination for bookings."""
    page_size = 25
    page_size_query_param = 'page_size'
    max_page_size = 100


class AdminBookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Booking management for admins.

    list: Filters status, payment_status, retreat, search (number, name, email)
    retrieve: Booking with installments, payments and audit log
    partial_update: Notes, special requests and phone only

    Lifecycle actions: cancel, restore, status, room, payment-link, retry-payment.
    """

    permission_classes = [IsSiteAdmin]
    pagination_class = BookingPagination

    def get_queryset(self):
        queryset = Booking.objects.select_related('retreat', 'room')
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('payment_schedules', 'payments', 'status_changes')

        params = self.request.query_params
        for field in ('status', 'payment_status'):
            if params.get(field):
                queryset = queryset.filter(**{field: params[field]})
        if params.get('retreat'):
            queryset = queryset.filter(retreat_id=params['retreat'])
        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(booking_number__icontains=search)
                | Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
            )
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return BookingListSerializer
        return BookingDetailSerializer

    def _detail(self, booking):
        booking = self.get_queryset().prefetch_related('payment_schedules', 'payments', 'status_changes').get(pk=booking.pk)
        return Response(BookingDetailSerializer(booking).data)

    @extend_schema(request=CancelBookingSerializer, responses={200: BookingDetailSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel the booking, free its room and stop its installments."""
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = cancel_booking(
                booking=self.get_object(),
                reason=serializer.validated_data['reason'],
                send_email=serializer.validated_data['sendEmail'],
                actor=request.user,
            )
        except BookingStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(booking)

    @extend_schema(request=RestoreBookingSerializer, responses={200: BookingDetailSerializer})
    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        """Reopen a cancelled booking if its room still has space."""
        serializer = RestoreBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = restore_booking(
                booking=self.get_object(),
                actor=request.user,
                new_due_date=serializer.validated_data.get('newDueDate'),
                reason=serializer.validated_data['reason'],
            )
        except RoomCapacityError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except BookingStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(booking)

    @extend_schema(request=BookingStatusSerializer, responses={200: BookingDetailSerializer})
    @action(detail=True, methods=['post'], url_path='status')
    def change_status(self, request, pk=None):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = change_booking_status(
                booking=self.get_object(),
                new_status=serializer.validated_data['status'],
                actor=request.user,
                reason=serializer.validated_data['reason'],
            )
        except BookingStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(booking)

    @extend_schema(request=AssignRoomSerializer, responses={200: BookingDetailSerializer})
    @action(detail=True, methods=['post'])
    def room(self, request, pk=None):
        """Move the booking to another room of the same retreat, or unassign it."""
        serializer = AssignRoomSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = assign_room(
                booking=self.get_object(),
                room_id=serializer.validated_data['roomId'],
                actor=request.user,
            )
        except RoomCapacityError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except RoomAssignmentError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(booking)

    @extend_schema(request=PaymentLinkSerializer)
    @action(detail=True, methods=['post'], url_path='payment-link')
    def payment_link(self, request, pk=None):
        """Stripe Checkout link for the next unpaid installment, to send to the customer."""
        serializer = PaymentLinkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            link = create_payment_link(
                booking=self.get_object(),
                schedule_id=serializer.validated_data.get('scheduleId'),
            )
        except ScheduleNotPayableError as e:
            return Response({'error': str(e), 'code': e.code}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(link)

    @extend_schema(request=RetryPaymentSerializer)
    @action(detail=True, methods=['post'], url_path='retry-payment')
    def retry_payment(self, request, pk=None):
        """Charge an installment off-session right now."""
        serializer = RetryPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            outcome = retry_payment(
                booking=self.get_object(),
                schedule_id=serializer.validated_data['scheduleId'],
                force=serializer.validated_data['force'],
                actor=request.user,
            )
        except ScheduleNotPayableError as e:
            return Response({'error': str(e), 'code': e.code}, status=status.HTTP_400_BAD_REQUEST)

        if not outcome.succeeded:
            return Response(
                {'success': False, 'error': outcome.error, 'exhausted': outcome.exhausted},
                status=status.HTTP_402_PAYMENT_REQUIRED,
            )
        return Response({'success': True, 'payment': PaymentSerializer(outcome.payment).data})


class MyBookingView(APIView):
    """Customer view of a booking through the emailed access link."""

    permission_classes = [AllowAny]

    @extend_schema(parameters=[OpenApiParameter('token', str, required=True)], tags=['bookings'])
    def get(self, request):
        token = request.query_params.get('token', '')
        try:
            booking = get_booking_by_access_token(token=token)
        except AccessTokenInvalidError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except AccessTokenExpiredError as e:
            return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)

        portal_url = None
        if booking.stripe_customer_id:
            try:
                portal_url = create_customer_portal_url(token=token)
            except PaymentGatewayError:
                logger.warning("Could not open billing portal for %s", booking.booking_number)

        data = MyBookingSerializer(booking).data
        data['customer_portal_url'] = portal_url
        return Response(data)
