from django.db import transaction
from django.db.models import F

from apps.accounts.models import Department, LawFirm

from .models import CaseNumberCounter, CreditCase, LegalCase
from .numbering import CaseNumberAllocator, PartitionKey, parse_sequence

CASE_MODELS = (CreditCase, LegalCase)
DEFAULT_DEPARTMENT_CODE = "LEG"


class DatabaseCounterStore:
    def exists(self, key: PartitionKey) -> bool:
        return CaseNumberCounter.objects.filter(key=key.as_key()).exists()

    def insert_if_absent(self, key: PartitionKey, initial: int) -> None:
        # get_or_create re-reads the row when a concurrent insert wins the unique key.
        CaseNumberCounter.objects.get_or_create(
            key=key.as_key(),
            defaults={
                "sequence": initial,
                "year": key.year,
                "prefix": key.prefix,
                "law_firm_id": key.law_firm_id,
                "department_id": key.department_id,
                "escalated": key.escalated,
            },
        )

    def increment_and_get(self, key: PartitionKey) -> int:
        counter_key = key.as_key()
        with transaction.atomic():
            updated = CaseNumberCounter.objects.filter(key=counter_key).update(sequence=F("sequence") + 1)
            if not updated:
                raise CaseNumberCounter.DoesNotExist(f"Case number counter {counter_key} does not exist")
            # The row stays locked by the UPDATE until this block commits.
            return CaseNumberCounter.objects.filter(key=counter_key).values_list("sequence", flat=True).get()


class DatabaseCaseIndex:
    def highest_sequence(self, prefix: str, year: int) -> int:
        highest = 0
        lead = f"{prefix}-{year}-"
        for model in CASE_MODELS:
            numbers = model.objects.filter(case_number__startswith=lead).values_list("case_number", flat=True)
            for number in numbers:
                sequence = parse_sequence(number, prefix=prefix, year=year)
                if sequence is not None and sequence > highest:
                    highest = sequence
        return highest

    def number_exists(self, case_number: str, exclude=None) -> bool:
        for model in CASE_MODELS:
            query = model.objects.filter(case_number=case_number)
            if isinstance(exclude, model) and exclude.pk is not None:
                query = query.exclude(pk=exclude.pk)
            if query.exists():
                return True
        return False


class DatabaseFirmDirectory:
    def resolve(self, *, law_firm_id, department_id=None, escalated: bool = False):
        if not law_firm_id:
            return None
        law_firm = LawFirm.objects.filter(id=law_firm_id).first()
        if not law_firm:
            return None
        if escalated:
            return law_firm.case_prefix, None
        if department_id is None:
            return None
        department = Department.objects.filter(id=department_id, law_firm=law_firm).first()
        if not department:
            return None
        return law_firm.case_prefix, department.code or DEFAULT_DEPARTMENT_CODE


def database_allocator() -> CaseNumberAllocator:
    return CaseNumberAllocator(
        counters=DatabaseCounterStore(),
        cases=DatabaseCaseIndex(),
        directory=DatabaseFirmDirectory(),
    )
