# accounting/management/commands/seed_chart_of_accounts.py
"""
Load the default chart of accounts.

Usage:
    python manage.py seed_chart_of_accounts
"""

from django.core.management.base import BaseCommand

from accounting.chart import seed_chart


class Command(BaseCommand):
    help = "Seed the default chart of accounts"

    def handle(self, *args, **options):
        created, skipped = seed_chart()
        self.stdout.write(self.style.SUCCESS(f"Done! Created {created}, skipped {skipped} existing."))
