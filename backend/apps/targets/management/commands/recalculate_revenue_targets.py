from django.core.management.base import BaseCommand
from django.db import transaction

from apps.targets.models import RevenueTarget


class Command(BaseCommand):
    help = "Rebuild the month/week/day breakdown of stored revenue targets from their yearly amount."

    def add_arguments(self, parser):
        parser.add_argument(
            "--year",
            type=int,
            help="Only rebuild targets for this year.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        targets = RevenueTarget.objects.select_for_update()
        if options["year"]:
            targets = targets.filter(year=options["year"])

        updated = 0
        for target in targets:
            target.recalculate()
            target.save(update_fields=["monthly_targets", "updated_at"])
            updated += 1

        self.stdout.write(self.style.SUCCESS(f"Completed: recalculated {updated} revenue targets."))
