import logging

from django.conf import settings
from django.db.models import Count, Q
from django.http import HttpResponse, HttpResponseRedirect
from django.utils import timezone
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsSiteAdmin
from apps.notifications.services import EmailDeliveryError
from .models import Campaign, Subscriber
from .serializers import (
    SubscriberSerializer,
    SubscribeSerializer,
    QuizSerializer,
    CampaignSerializer,
    CampaignRecipientSerializer,
    CampaignTestSerializer,
)
from .services import (
    ALREADY_SUBSCRIBED,
    subscribe,
    confirm_subscription,
    unsubscribe,
    submit_quiz,
    send_campaign,
    send_test,
    newsletter_stats,
    export_subscribers_csv,
    InvalidTokenError,
    ExpiredTokenError,
    CampaignStateError,
    NoRecipientsError,
)

logger = logging.getLogger(__name__)


def _site_redirect(path: str) -> HttpResponseRedirect:
    return HttpResponseRedirect(f"{settings.SITE_URL}{path}")


class SubscriberPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


# =============================================================================
# Public
# =============================================================================

class SubscribeView(APIView):
    """Start a double opt-in subscription."""

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'newsletter'

    @extend_schema(request=SubscribeSerializer, tags=['newsletter'])
    def post(self, request):
        serializer = SubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        outcome = subscribe(
            email=data['email'],
            first_name=data['firstName'],
            language=data['language'],
            source=data['source'],
        )
        if outcome == ALREADY_SUBSCRIBED:
            return Response({'status': outcome, 'message': 'Already subscribed'})
        return Response(
            {'status': outcome, 'message': 'Please check your email to confirm subscription'},
            status=status.HTTP_201_CREATED,
        )


class ConfirmView(APIView):
    """Confirmation link target; redirects to the frontend result page."""

    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[OpenApiParameter('token', str, required=True)],
        responses={302: None},
        tags=['newsletter'],
    )
    def get(self, request):
        token = request.query_params.get('token')
        if not token:
            return _site_redirect('/newsletter/error?reason=missing_token')
        try:
            result = confirm_subscription(token=token)
        except InvalidTokenError:
            return _site_redirect('/newsletter/error?reason=invalid_token')
        except ExpiredTokenError:
            return _site_redirect('/newsletter/error?reason=expired_token')

        if result.already_confirmed:
            return _site_redirect('/newsletter/success?already=true')
        return _site_redirect('/newsletter/success')


class UnsubscribeView(APIView):
    """One-click unsubscribe link target."""

    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[OpenApiParameter('token', str, required=True)],
        responses={302: None},
        tags=['newsletter'],
    )
    def get(self, request):
        try:
            result = unsubscribe(token=request.query_params.get('token', ''))
        except InvalidTokenError:
            return _site_redirect('/newsletter/unsubscribed?error=invalid_token')
        if result.already_unsubscribed:
            return _site_redirect('/newsletter/unsubscribed?status=already')
        return _site_redirect('/newsletter/unsubscribed?status=success')


class QuizView(APIView):
    """Onboarding quiz answers, used to tag the subscriber."""

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'newsletter'

    @extend_schema(request=QuizSerializer, tags=['newsletter'])
    def post(self, request):
        serializer = QuizSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            subscriber = submit_quiz(**serializer.validated_data)
        except InvalidTokenError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'success': True, 'tags': subscriber.tags})


# =============================================================================
# Admin
# =============================================================================

class SubscriberViewSet(viewsets.ModelViewSet):
    """
    Subscriber management for admins.

    Filters: status, language, source, search (email or first name).
    """

    serializer_class = SubscriberSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = SubscriberPagination

    def get_queryset(self):
        queryset = Subscriber.objects.all()
        params = self.request.query_params

        for field in ('status', 'language', 'source'):
            value = params.get(field)
            if value:
                queryset = queryset.filter(**{field: value})

        search = params.get('search')
        if search:
            queryset = queryset.filter(Q(email__icontains=search) | Q(first_name__icontains=search))
        return queryset

    def perform_create(self, serializer):
        confirmed_at = timezone.now() if serializer.validated_data.get('status') == Subscriber.Status.ACTIVE else None
        serializer.save(confirmed_at=confirmed_at)

    @extend_schema(responses={(200, 'text/csv'): str})
    @action(detail=False, methods=['get'])
    def export(self, request):
        """All matching subscribers as CSV."""
        response = HttpResponse(export_subscribers_csv(self.get_queryset()), content_type='text/csv')
        filename = f"newsletter-subscribers-{timezone.now():%Y-%m-%d}.csv"
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response


class CampaignViewSet(viewsets.ModelViewSet):
    """Newsletter campaigns: CRUD, send, test send and recipients."""

    serializer_class = CampaignSerializer
    permission_classes = [IsSiteAdmin]

    def get_queryset(self):
        queryset = Campaign.objects.annotate(recipient_count=Count('recipients'))
        campaign_status = self.request.query_params.get('status')
        if campaign_status:
            queryset = queryset.filter(status=campaign_status)
        return queryset

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    def destroy(self, request, *args, **kwargs):
        campaign = self.get_object()
        if campaign.status == Campaign.Status.SENDING:
            return Response({'error': 'Cannot delete a campaign while it is being sent'}, status=status.HTTP_409_CONFLICT)
        return super().destroy(request, *args, **kwargs)

    @action(detail=True, methods=['post'])
    def send(self, request, pk=None):
        """Deliver the campaign to its targeted subscribers."""
        campaign = self.get_object()
        try:
            stats = send_campaign(campaign_id=campaign.id)
        except CampaignStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except NoRecipientsError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'success': True, 'stats': stats})

    @extend_schema(request=CampaignTestSerializer)
    @action(detail=True, methods=['post'])
    def test(self, request, pk=None):
        """Send one [TEST] copy to an admin address."""
        campaign = self.get_object()
        serializer = CampaignTestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            send_test(campaign=campaign, **serializer.validated_data)
        except EmailDeliveryError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response({'success': True, 'message': f"Test email sent to {serializer.validated_data['email']}"})

    @extend_schema(responses={200: CampaignRecipientSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def recipients(self, request, pk=None):
        campaign = self.get_object()
        return Response(CampaignRecipientSerializer(campaign.recipients.all(), many=True).data)


class NewsletterStatsView(APIView):
    permission_classes = [IsSiteAdmin]

    @extend_schema(tags=['newsletter'])
    def get(self, request):
        return Response(newsletter_stats())
