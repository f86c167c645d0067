"""
Send payment, deadline and pre-retreat reminder emails.

Usage:
    python manage.py send_reminders [--dry-run]
"""

from django.core.management.base import BaseCommand
from apps.payments.services import send_reminders


class Command(BaseCommand):
    help = 'Send due payment reminders, payment deadline reminders and pre-retreat reminders'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show which reminders would be sent without sending them',
        )

    def handle(self, *args, **options):
        result = send_reminders(dry_run=options['dry_run'])

        for category, counts in result.items():
            style = self.style.ERROR if counts['errors'] else self.style.SUCCESS
            self.stdout.write(style(f"{category}: {counts['sent']} sent, {counts['errors']} errors"))

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: No emails sent.'))
