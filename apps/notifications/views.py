import json
import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsSiteAdmin
from apps.bookings.models import Booking
from .models import EmailTemplate, EmailLog
from .serializers import (
    EmailTemplateSerializer,
    TemplatePreviewSerializer,
    EmailLogSerializer,
    SendEmailSerializer,
)
from .services import (
    render_preview,
    send_template_to_booking,
    verify_signature,
    process_resend_event,
    EmailDeliveryError,
    TemplateNotFoundError,
    WebhookSignatureError,
)

logger = logging.getLogger(__name__)


class EmailLogPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class EmailTemplateViewSet(viewsets.ModelViewSet):
    """
    Email template management for admins.

    Filters: category, language, slug
    """

    serializer_class = EmailTemplateSerializer
    permission_classes = [IsSiteAdmin]

    def get_queryset(self):
        queryset = EmailTemplate.objects.all()
        for field in ('category', 'language', 'slug'):
            value = self.request.query_params.get(field)
            if value:
                queryset = queryset.filter(**{field: value})
        return queryset

    @extend_schema(request=TemplatePreviewSerializer)
    @action(detail=False, methods=['post'])
    def preview(self, request):
        """Render subject and body with sample data, without saving."""
        serializer = TemplatePreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rendered = render_preview(
            subject=serializer.validated_data['subject'],
            html_content=serializer.validated_data['html_content'],
            context=serializer.validated_data['sample_data'],
        )
        return Response({'subject': rendered.subject, 'html': rendered.html, 'text': rendered.text})


class EmailLogViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Sent email audit log.

    Filters: status, email_type, recipient_type, booking, search (recipient)
    """

    serializer_class = EmailLogSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = EmailLogPagination

    def get_queryset(self):
        queryset = EmailLog.objects.select_related('booking')
        params = self.request.query_params
        for field in ('status', 'email_type', 'recipient_type'):
            if params.get(field):
                queryset = queryset.filter(**{field: params[field]})
        if params.get('booking'):
            queryset = queryset.filter(booking_id=params['booking'])
        if params.get('search'):
            queryset = queryset.filter(recipient_email__icontains=params['search'])
        return queryset

    @extend_schema(request=SendEmailSerializer, responses={201: EmailLogSerializer})
    @action(detail=False, methods=['post'])
    def send(self, request):
        """Send a template to the customer of a booking."""
        serializer = SendEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = get_object_or_404(
            Booking.objects.select_related('retreat', 'room'),
            pk=serializer.validated_data['bookingId'],
        )
        try:
            log = send_template_to_booking(booking, slug=serializer.validated_data['templateSlug'])
        except TemplateNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except EmailDeliveryError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(EmailLogSerializer(log).data, status=status.HTTP_201_CREATED)


class ResendWebhookView(APIView):
    """Delivery events from Resend."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(exclude=True)
    def get(self, request):
        return Response({'status': 'ok', 'service': 'resend-webhook'})

    @extend_schema(exclude=True)
    def post(self, request):
        body = request.body
        header = request.META.get('HTTP_SVIX_SIGNATURE') or request.META.get('HTTP_WEBHOOK_SIGNATURE', '')

        if not settings.RESEND_WEBHOOK_SECRET:
            logger.error("RESEND_WEBHOOK_SECRET not configured")
            return Response({'error': 'Webhook not configured'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            verify_signature(body=body, header=header, secret=settings.RESEND_WEBHOOK_SECRET)
        except WebhookSignatureError as e:
            logger.warning("Rejected Resend webhook: %s", e)
            return Response({'error': 'Invalid signature'}, status=status.HTTP_401_UNAUTHORIZED)

        try:
            event = json.loads(body)
        except ValueError:
            return Response({'error': 'Invalid JSON'}, status=status.HTTP_400_BAD_REQUEST)

        process_resend_event(event)
        return Response({'received': True})
