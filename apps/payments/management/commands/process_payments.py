"""
Charge due installments off-session and auto-cancel bookings past their
payment deadline.

Usage:
    python manage.py process_payments [--dry-run]
"""

from django.core.management.base import BaseCommand
from apps.payments.services import process_payments


class Command(BaseCommand):
    help = 'Charge due payment installments and cancel bookings past their payment deadline'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be charged or cancelled without making changes',
        )

    def handle(self, *args, **options):
        result = process_payments(dry_run=options['dry_run'])

        self.stdout.write(
            f"Processed {result['processed']}: {result['succeeded']} succeeded, "
            f"{result['failed']} failed, {result['skipped']} skipped, {result['cancelled']} cancelled"
        )
        for error in result['errors']:
            self.stdout.write(self.style.ERROR(f'  - {error}'))

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
        elif not result['errors']:
            self.stdout.write(self.style.SUCCESS('Payment run complete.'))
