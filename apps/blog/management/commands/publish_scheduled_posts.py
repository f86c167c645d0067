"""
Publish blog posts whose scheduled time has passed.

Usage:
    python manage.py publish_scheduled_posts [--dry-run]
"""

from django.core.management.base import BaseCommand
from apps.blog.services import publish_scheduled_posts


class Command(BaseCommand):
    help = 'Publish scheduled blog posts that are due'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List posts that would be published without changing them',
        )

    def handle(self, *args, **options):
        result = publish_scheduled_posts(dry_run=options['dry_run'])

        self.stdout.write(f"Published {result['published']} posts, {result['failed']} failed")
        for error in result['errors']:
            self.stdout.write(self.style.ERROR(f'  - {error}'))

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
        elif not result['errors']:
            self.stdout.write(self.style.SUCCESS('Scheduled posts published.'))
