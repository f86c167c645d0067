"""
HTTP triggers for scheduled jobs.

Each endpoint accepts GET and POST so any scheduler can call it, and
requires ``Authorization: Bearer <CRON_SECRET>``.
"""

import logging

from rest_framework.exceptions import NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.blog.services import publish_scheduled_posts
from apps.payments.services import process_payments, send_reminders
from apps.trash.services import cleanup_trash
from apps.waitlist.services import expire_notifications
from .permissions import HasCronSecret
from .services import weekly_summary, send_followups

logger = logging.getLogger(__name__)


class CronJobView(APIView):
    """Runs ``job()`` and returns its result dict."""

    authentication_classes = []
    permission_classes = [HasCronSecret]
    job_name = None

    def job(self):
        raise NotImplementedError

    def permission_denied(self, request, message=None, code=None):
        raise NotAuthenticated(message)

    def get_authenticate_header(self, request):
        return 'Bearer'

    def run(self):
        logger.info("Cron job %s started", self.job_name)
        result = self.job()
        logger.info("Cron job %s finished", self.job_name)
        return Response({'success': True, **result})

    @extend_schema(tags=['cron'])
    def get(self, request):
        return self.run()

    @extend_schema(tags=['cron'])
    def post(self, request):
        return self.run()


class CleanupTrashView(CronJobView):
    job_name = 'cleanup-trash'

    def job(self):
        return cleanup_trash()


class ProcessPaymentsView(CronJobView):
    job_name = 'process-payments'

    def job(self):
        return process_payments()


class SendRemindersView(CronJobView):
    job_name = 'send-reminders'

    def job(self):
        return send_reminders()


class PublishScheduledView(CronJobView):
    job_name = 'publish-scheduled'

    def job(self):
        return publish_scheduled_posts()


class ExpireWaitlistView(CronJobView):
    job_name = 'expire-waitlist'

    def job(self):
        return expire_notifications()


class WeeklySummaryView(CronJobView):
    job_name = 'weekly-summary'

    def job(self):
        result = weekly_summary()
        summary = result.pop('summary')
        return {**result, 'stats': summary['stats'], 'upcomingRetreats': summary['upcomingRetreats']}


class SendFollowupView(CronJobView):
    job_name = 'send-followup'

    def job(self):
        return send_followups()
