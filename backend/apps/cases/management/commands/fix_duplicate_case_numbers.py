from collections import defaultdict

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.cases.stores import CASE_MODELS


class Command(BaseCommand):
    help = (
        "Rename cases that share a case number. The oldest case keeps the number, "
        "later ones become '<number>-DUP-<n>'."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report duplicates without renaming anything.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        groups = defaultdict(list)
        for model in CASE_MODELS:
            for case in model.objects.order_by("created_at", "id"):
                groups[case.case_number].append(case)

        duplicates = {number: cases for number, cases in groups.items() if len(cases) > 1}
        self.stdout.write(f"Found {len(duplicates)} duplicate case numbers.")

        renamed = 0
        for number, cases in duplicates.items():
            cases.sort(key=lambda case: (case.created_at, case.id))
            for index, case in enumerate(cases[1:], start=1):
                new_number = f"{number}-DUP-{index}"
                self.stdout.write(f"{case._meta.label} #{case.id}: {number} -> {new_number}")
                if not dry_run:
                    type(case).objects.filter(pk=case.pk).update(case_number=new_number)
                renamed += 1

        if dry_run:
            self.stdout.write(self.style.WARNING(f"Dry run: {renamed} cases would be renamed."))
            return
        self.stdout.write(self.style.SUCCESS(f"Completed: renamed {renamed} cases."))
