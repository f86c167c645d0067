"""
Expire waitlist offers that were not answered within 72 hours.

Usage:
    python manage.py expire_waitlist [--dry-run]
"""

from django.core.management.base import BaseCommand
from apps.waitlist.services import expire_notifications


class Command(BaseCommand):
    help = 'Expire unanswered waitlist offers and notify the customers'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Count offers that would expire without changing them',
        )

    def handle(self, *args, **options):
        result = expire_notifications(dry_run=options['dry_run'])

        self.stdout.write(f"Expired {result['expired']} of {result['total']} offers")
        if result['emailErrors']:
            self.stdout.write(self.style.ERROR(f"  {result['emailErrors']} expiry emails could not be sent"))

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
        else:
            self.stdout.write(self.style.SUCCESS('Waitlist expiry complete.'))
