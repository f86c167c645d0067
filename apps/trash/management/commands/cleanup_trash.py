"""
Permanently delete retreats and blog posts that have been in the trash
longer than the retention period.

Usage:
    python manage.py cleanup_trash [--dry-run]
"""

from django.core.management.base import BaseCommand
from apps.trash.services import cleanup_trash


class Command(BaseCommand):
    help = 'Permanently delete trashed retreats and blog posts past the retention period'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Count what would be deleted without deleting anything',
        )

    def handle(self, *args, **options):
        result = cleanup_trash(dry_run=options['dry_run'])
        self.stdout.write(result['message'])

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
        else:
            self.stdout.write(self.style.SUCCESS('Trash cleanup complete.'))
