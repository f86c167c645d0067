"""
Send feedback requests to guests whose retreat ended two days ago.

Usage:
    python manage.py send_followups [--dry-run]
"""

from django.core.management.base import BaseCommand
from apps.jobs.services import send_followups


class Command(BaseCommand):
    help = 'Email feedback requests two days after a retreat ends'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Count eligible bookings without sending emails',
        )

    def handle(self, *args, **options):
        result = send_followups(dry_run=options['dry_run'])

        self.stdout.write(f"{result['eligible']} eligible, {result['sent']} sent, {result['failed']} failed")

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: No emails sent.'))
        elif result['failed']:
            self.stdout.write(self.style.ERROR('Some follow-up emails could not be sent.'))
        else:
            self.stdout.write(self.style.SUCCESS('Follow-ups sent.'))
