"""
Email the weekly activity summary to the general admin address.

Usage:
    python manage.py weekly_summary [--dry-run]
"""

from django.core.management.base import BaseCommand
from apps.jobs.services import weekly_summary


class Command(BaseCommand):
    help = 'Send the weekly bookings, payments and waitlist summary to the admins'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Print the summary without sending it',
        )

    def handle(self, *args, **options):
        result = weekly_summary(dry_run=options['dry_run'])

        for key, value in result['summary']['stats'].items():
            self.stdout.write(f"  {key}: {value}")
        for retreat in result['summary']['upcomingRetreats']:
            self.stdout.write(
                f"  {retreat['title']} ({retreat['startDate']}): "
                f"{retreat['bookingsCount']} bookings, {retreat['spotsRemaining']} spots left"
            )

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: Summary not sent.'))
        elif result['sent']:
            self.stdout.write(self.style.SUCCESS(f"Summary sent to {result['recipient']}."))
        else:
            self.stdout.write(self.style.WARNING(f"Summary not sent ({result.get('reason', 'email failed')})."))
