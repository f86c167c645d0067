from unittest.mock import patch

import pytest
from django.urls import reverse

CRON_JOBS = [
    'cleanup-trash',
    'process-payments',
    'send-reminders',
    'publish-scheduled',
    'expire-waitlist',
    'weekly-summary',
    'send-followup',
]


@pytest.mark.django_db
class TestCronAuth:

    @pytest.mark.parametrize('job', CRON_JOBS)
    def test_requires_secret(self, api_client, job):
        assert api_client.get(reverse(f'jobs:{job}')).status_code == 401

    def test_wrong_secret(self, api_client):
        response = api_client.get(reverse('jobs:cleanup-trash'), HTTP_AUTHORIZATION='Bearer guess')
        assert response.status_code == 401

    def test_admin_jwt_is_not_enough(self, admin_client):
        assert admin_client.get(reverse('jobs:cleanup-trash')).status_code == 401

    def test_unconfigured_secret_rejects_everything(self, api_client, settings):
        settings.CRON_SECRET = ''
        assert api_client.get(reverse('jobs:cleanup-trash'), HTTP_AUTHORIZATION='Bearer ').status_code == 401


@pytest.mark.django_db
class TestCronJobs:

    @pytest.mark.parametrize('job', CRON_JOBS)
    def test_runs_on_get_and_post(self, api_client, cron_headers, job):
        url = reverse(f'jobs:{job}')
        assert api_client.get(url, **cron_headers).data['success'] is True
        assert api_client.post(url, **cron_headers).data['success'] is True

    def test_process_payments_result(self, api_client, cron_headers):
        with patch('apps.jobs.views.process_payments', return_value={'processed': 2, 'succeeded': 2}) as job:
            response = api_client.post(reverse('jobs:process-payments'), **cron_headers)

        job.assert_called_once_with()
        assert response.data == {'success': True, 'processed': 2, 'succeeded': 2}

    def test_weekly_summary_flattens_report(self, api_client, cron_headers, mock_resend):
        response = api_client.get(reverse('jobs:weekly-summary'), **cron_headers)

        assert response.data['sent'] is True
        assert 'stats' in response.data
        assert response.data['upcomingRetreats'] == []
        assert 'summary' not in response.data
