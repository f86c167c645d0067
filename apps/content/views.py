import logging

from django.conf import settings
from django.db import transaction
from rest_framework import viewsets, mixins, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsSiteAdmin
from apps.notifications.services import send_contact_confirmation, notify_admin_support_request
from .models import PolicySection, RetreatFeedback
from .serializers import (
    SECTION_SERIALIZERS,
    PolicySectionSerializer,
    ContactSerializer,
    FeedbackSubmitSerializer,
    RetreatFeedbackSerializer,
    UploadSerializer,
)
from .services import (
    get_setting,
    get_all_settings,
    update_setting,
    get_policy_sections,
    submit_feedback,
    verify_feedback_token,
    store_upload,
    InvalidFeedbackTokenError,
    FeedbackNotAllowedError,
    UploadRejectedError,
)

logger = logging.getLogger(__name__)

# Sections safe to expose to the public site
PUBLIC_SECTIONS = ('general', 'email', 'booking')


class PublicSettingsView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(tags=['content'])
    def get(self, request):
        return Response({section: get_setting(section) for section in PUBLIC_SECTIONS})


class AdminSettingsView(APIView):
    """
    Site settings for admins.

    GET: every section
    PATCH: ``{"section": "booking", "values": {...}}``, validated per section
    """

    permission_classes = [IsSiteAdmin]

    def get(self, request):
        return Response(get_all_settings())

    def patch(self, request):
        section = request.data.get('section')
        serializer_class = SECTION_SERIALIZERS.get(section)
        if serializer_class is None:
            return Response({'error': f"Unknown settings section: {section}"}, status=status.HTTP_400_BAD_REQUEST)

        serializer = serializer_class(data=request.data.get('values') or {})
        serializer.is_valid(raise_exception=True)
        value = update_setting(section=section, values=serializer.validated_data, user=request.user)
        return Response({section: value})


class PolicyListView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(parameters=[OpenApiParameter('language', str)], tags=['content'])
    def get(self, request):
        language = request.query_params.get('language', 'en')
        if language not in settings.SUPPORTED_LANGUAGES:
            language = 'en'
        sections = get_policy_sections(language=language)
        return Response(PolicySectionSerializer(sections, many=True).data)


class AdminPolicySectionViewSet(viewsets.ModelViewSet):
    """Policy sections for admins. POST upserts on (section_key, language)."""

    serializer_class = PolicySectionSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = None

    def get_queryset(self):
        queryset = PolicySection.objects.all()
        language = self.request.query_params.get('language')
        if language:
            queryset = queryset.filter(language=language)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        section, created = PolicySection.objects.update_or_create(
            section_key=data.pop('section_key'),
            language=data.pop('language', 'en'),
            defaults=data,
        )
        return Response(
            self.get_serializer(section).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class ContactView(APIView):
    """Public contact form. Confirms to the sender and forwards to support."""

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'contact'

    @extend_schema(request=ContactSerializer, tags=['content'])
    def post(self, request):
        serializer = ContactSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # Either email failing must not fail the form
        def _send():
            send_contact_confirmation(**data)
            notify_admin_support_request(**data)

        transaction.on_commit(_send)
        logger.info("Contact form submitted by %s", data['email'])
        return Response({'success': True, 'message': "Thank you! We'll get back to you soon."})


class FeedbackView(APIView):
    """
    Retreat feedback from the signed link in the follow-up email.

    GET: check the link before showing the form
    POST: submit answers (once per booking)
    """

    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[OpenApiParameter('booking', str, required=True), OpenApiParameter('token', str, required=True)],
        tags=['content'],
    )
    def get(self, request):
        booking_id = request.query_params.get('booking', '')
        token = request.query_params.get('token', '')
        valid = bool(booking_id) and verify_feedback_token(booking_id, token)
        submitted = valid and RetreatFeedback.objects.filter(booking_id=booking_id).exists()
        return Response({'valid': valid, 'submitted': submitted})

    @extend_schema(request=FeedbackSubmitSerializer, tags=['content'])
    def post(self, request):
        serializer = FeedbackSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            submit_feedback(
                booking_id=serializer.validated_data['bookingId'],
                token=serializer.validated_data['token'],
                **serializer.answers(),
            )
        except InvalidFeedbackTokenError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except FeedbackNotAllowedError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'success': True}, status=status.HTTP_201_CREATED)


class FeedbackPagination(PageNumberPagination):
    page_size = 25
    page_size_query_param = 'page_size'
    max_page_size = 100


class AdminFeedbackViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Submitted feedback. Filters: retreat, testimonial (consented testimonials only)."""

    serializer_class = RetreatFeedbackSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = FeedbackPagination

    def get_queryset(self):
        queryset = RetreatFeedback.objects.select_related('booking', 'retreat')
        params = self.request.query_params
        if params.get('retreat'):
            queryset = queryset.filter(retreat_id=params['retreat'])
        if params.get('testimonial') == 'true':
            queryset = queryset.filter(allow_testimonial_use=True).exclude(testimonial='')
        return queryset


class UploadView(APIView):
    permission_classes = [IsSiteAdmin]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(request=UploadSerializer)
    def post(self, request):
        serializer = UploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            stored = store_upload(
                file=serializer.validated_data['file'],
                folder=serializer.validated_data['folder'],
            )
        except UploadRejectedError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({**stored, 'url': request.build_absolute_uri(stored['url'])}, status=status.HTTP_201_CREATED)
