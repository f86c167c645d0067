import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import HttpResponse, HttpResponseRedirect
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import viewsets, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsSiteAdmin
from apps.bookings.services import AccessTokenInvalidError, AccessTokenExpiredError
from .models import PaymentSchedule
from .serializers import (
    AdminPaymentScheduleSerializer,
    PaymentSerializer,
    PaymentScheduleSerializer,
    CheckoutSerializer,
    VatValidateSerializer,
    CustomerPortalSerializer,
    RefundRequestSerializer,
)
from .services import (
    create_checkout,
    construct_webhook_event,
    dispatch_event,
    create_early_payment_session,
    create_customer_portal_url,
    validate_vat_id,
    build_vat_report,
    vat_report_csv,
    refund_payment,
    cancel_schedule,
    CheckoutError,
    CheckoutNotFoundError,
    PaymentGatewayError,
    ScheduleNotPayableError,
    RefundError,
    InvalidVatIdError,
    WebhookVerificationError,
)

logger = logging.getLogger(__name__)


class CheckoutView(APIView):
    """Create a booking and a Stripe Checkout session for its first payment."""

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'checkout'

    @extend_schema(request=CheckoutSerializer, tags=['payments'])
    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = create_checkout(data=serializer.to_service_data())
        except CheckoutNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except CheckoutError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError:
            return Response(
                {'error': 'Failed to create checkout session. Please try again.'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response(result.as_dict())


class StripeWebhookView(APIView):
    """Stripe event receiver. The raw body is needed for signature verification."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(request=None, tags=['payments'])
    def post(self, request):
        try:
            event = construct_webhook_event(
                payload=request.body,
                signature=request.META.get('HTTP_STRIPE_SIGNATURE', ''),
            )
        except WebhookVerificationError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        outcome = dispatch_event(event)
        logger.info("Stripe event %s (%s): %s", event['id'], event['type'], outcome)
        return Response({'received': True, 'outcome': outcome})


class EarlyPaymentView(APIView):
    """Pay-now link from reminder emails; redirects to Stripe Checkout."""

    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[OpenApiParameter('token', str, required=True)],
        responses={302: None},
        tags=['payments'],
    )
    def get(self, request, schedule_id):
        token = request.query_params.get('token', '')
        try:
            url = create_early_payment_session(schedule_id=schedule_id, token=token)
        except ScheduleNotPayableError as e:
            return self._back_to_booking(token, e.code)
        except PaymentGatewayError:
            return self._back_to_booking(token, 'checkout_failed')
        return HttpResponseRedirect(url)

    @staticmethod
    def _back_to_booking(token: str, error: str) -> HttpResponseRedirect:
        return HttpResponseRedirect(f"{settings.SITE_URL}/my-booking?{urlencode({'token': token, 'error': error})}")


class CustomerPortalView(APIView):
    """Stripe billing portal where customers manage their saved card."""

    permission_classes = [AllowAny]

    @extend_schema(request=CustomerPortalSerializer, tags=['payments'])
    def post(self, request):
        serializer = CustomerPortalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            url = create_customer_portal_url(token=serializer.validated_data['token'])
        except AccessTokenInvalidError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except AccessTokenExpiredError as e:
            return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)
        except PaymentGatewayError:
            return Response({'error': 'Failed to open customer portal'}, status=status.HTTP_502_BAD_GATEWAY)

        if url is None:
            return Response({'error': 'No payment account found for this booking'}, status=status.HTTP_404_NOT_FOUND)
        return Response({'url': url})


class VatValidateView(APIView):
    """EU VAT ID check for business customers at checkout."""

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'promo'

    @extend_schema(request=VatValidateSerializer, tags=['payments'])
    def post(self, request):
        serializer = VatValidateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'valid': False, 'error': 'VAT ID and country are required'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            check = validate_vat_id(
                vat_id=serializer.validated_data['vatId'],
                country=serializer.validated_data['country'],
            )
        except InvalidVatIdError as e:
            return Response({'valid': False, 'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(check.as_dict())


class VatReportView(APIView):
    """VAT collected per country over confirmed and completed bookings."""

    permission_classes = [IsSiteAdmin]

    @extend_schema(
        parameters=[
            OpenApiParameter('from', str, description='Start date (YYYY-MM-DD)'),
            OpenApiParameter('to', str, description='End date (YYYY-MM-DD)'),
            OpenApiParameter('format', str, description="'csv' for a file download"),
        ],
        tags=['payments'],
    )
    def get(self, request):
        params = request.query_params
        date_from = parse_date(params['from']) if params.get('from') else None
        date_to = parse_date(params['to']) if params.get('to') else None
        if (params.get('from') and date_from is None) or (params.get('to') and date_to is None):
            return Response({'error': 'Dates must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

        report = build_vat_report(date_from=date_from, date_to=date_to)
        if params.get('format') == 'csv':
            response = HttpResponse(vat_report_csv(report), content_type='text/csv')
            response['Content-Disposition'] = f'attachment; filename="vat-report-{timezone.localdate()}.csv"'
            return response
        return Response(report)


class RefundView(APIView):
    """Refund a payment, or cancel an installment that has not been paid."""

    permission_classes = [IsSiteAdmin]

    @extend_schema(request=RefundRequestSerializer, tags=['payments'])
    def post(self, request):
        serializer = RefundRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            if data['action'] == RefundRequestSerializer.ACTION_CANCEL:
                schedule = cancel_schedule(schedule_id=data['scheduleId'], actor=request.user, reason=data['reason'])
                return Response({'success': True, 'schedule': PaymentScheduleSerializer(schedule).data})

            refund = refund_payment(
                payment_id=data['paymentId'],
                amount=data.get('amount'),
                reason=data['reason'],
                actor=request.user,
            )
        except RefundError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentGatewayError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({'success': True, 'refund': PaymentSerializer(refund).data}, status=status.HTTP_201_CREATED)


class SchedulePagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class AdminPaymentScheduleViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Installments across all bookings.

    Filters: status, booking, overdue (unpaid and past due).
    """

    serializer_class = AdminPaymentScheduleSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = SchedulePagination

    def get_queryset(self):
        queryset = PaymentSchedule.objects.select_related('booking', 'booking__retreat').order_by('due_date', 'payment_number')
        params = self.request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('booking'):
            queryset = queryset.filter(booking_id=params['booking'])
        if params.get('overdue') in ('1', 'true'):
            queryset = queryset.filter(
                status__in=PaymentSchedule.UNPAID_STATUSES,
                due_date__lt=timezone.localdate(),
            )
        return queryset
