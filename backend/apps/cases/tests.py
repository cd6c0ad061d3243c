import re
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from apps.accounts.models import Department, LawFirm

from .exceptions import CaseWorkflowError
from .models import CaseNumberCounter, CreditCase, LegalCase
from .numbering import MAX_ALLOCATION_RETRIES, CaseNumberAllocator, PartitionKey, parse_sequence
from .services import create_credit_case, create_legal_case, escalate_credit_case
from .stores import DatabaseCaseIndex, DatabaseCounterStore, DatabaseFirmDirectory, database_allocator

FALLBACK_PATTERN = re.compile(r"^CC-\d+-\w{5}$")


class FakeCounterStore:
    def __init__(self):
        self.sequences = {}
        self.lock = threading.Lock()
        self.increments = 0

    def exists(self, key):
        with self.lock:
            return key.as_key() in self.sequences

    def insert_if_absent(self, key, initial):
        with self.lock:
            self.sequences.setdefault(key.as_key(), initial)

    def increment_and_get(self, key):
        with self.lock:
            self.sequences[key.as_key()] += 1
            self.increments += 1
            return self.sequences[key.as_key()]


class BrokenCounterStore(FakeCounterStore):
    def increment_and_get(self, key):
        raise DatabaseError("counter store unavailable")


class FakeCaseIndex:
    def __init__(self, numbers=(), *, highest=None, always_taken=False):
        self.numbers = set(numbers)
        self.highest = highest
        self.always_taken = always_taken

    def highest_sequence(self, prefix, year):
        if self.highest is not None:
            return self.highest
        sequences = [parse_sequence(number, prefix=prefix, year=year) for number in self.numbers]
        return max([sequence for sequence in sequences if sequence is not None], default=0)

    def number_exists(self, case_number, exclude=None):
        return self.always_taken or case_number in self.numbers


class FakeDirectory:
    def __init__(self, firms):
        self.firms = firms

    def resolve(self, *, law_firm_id, department_id=None, escalated=False):
        firm = self.firms.get(law_firm_id)
        if firm is None:
            return None
        firm_code, departments = firm
        if escalated:
            return firm_code, None
        if department_id is None:
            return None
        if department_id not in departments:
            return None
        return firm_code, departments[department_id]


def make_allocator(cases=None, counters=None, today=date(2024, 5, 1)):
    return CaseNumberAllocator(
        counters=counters or FakeCounterStore(),
        cases=cases or FakeCaseIndex(),
        directory=FakeDirectory({1: ("ACME", {10: "CC", 20: "LIT"})}),
        today=lambda: today,
    )


class CaseNumberAllocatorTests(SimpleTestCase):
    def test_sequential_allocations_have_no_gaps(self):
        allocator = make_allocator()

        numbers = [allocator.allocate(law_firm_id=1, department_id=10) for _ in range(3)]

        self.assertEqual(numbers, ["ACME-CC-2024-0001", "ACME-CC-2024-0002", "ACME-CC-2024-0003"])

    def test_concurrent_allocations_are_unique(self):
        allocator = make_allocator()
        total = 300

        with ThreadPoolExecutor(max_workers=50) as executor:
            numbers = list(
                executor.map(lambda _: allocator.allocate(law_firm_id=1, department_id=10), range(total))
            )

        self.assertEqual(len(set(numbers)), total)
        sequences = sorted(parse_sequence(number, prefix="ACME-CC", year=2024) for number in numbers)
        self.assertEqual(sequences, list(range(1, total + 1)))

    def test_counter_is_seeded_from_existing_case_numbers(self):
        allocator = make_allocator(cases=FakeCaseIndex({"ACME-CC-2024-0003", "ACME-CC-2024-0007"}))

        self.assertEqual(allocator.allocate(law_firm_id=1, department_id=10), "ACME-CC-2024-0008")

    def test_escalated_and_regular_sequences_are_independent(self):
        allocator = make_allocator()

        regular = [allocator.allocate(law_firm_id=1, department_id=10) for _ in range(2)]
        escalated = allocator.allocate(law_firm_id=1, department_id=10, escalated=True)
        regular.append(allocator.allocate(law_firm_id=1, department_id=10))

        self.assertEqual(regular, ["ACME-CC-2024-0001", "ACME-CC-2024-0002", "ACME-CC-2024-0003"])
        self.assertEqual(escalated, "ACME-ESC-2024-0001")

    def test_escalations_share_one_firm_wide_sequence(self):
        allocator = make_allocator()

        numbers = [
            allocator.allocate(law_firm_id=1, department_id=20, escalated=True),
            allocator.allocate(law_firm_id=1, escalated=True),
            allocator.allocate(law_firm_id=1, department_id=10, escalated=True),
        ]

        self.assertEqual(numbers, ["ACME-ESC-2024-0001", "ACME-ESC-2024-0002", "ACME-ESC-2024-0003"])
        key = allocator.partition_key(law_firm_id=1, department_id=20, escalated=True)
        self.assertIsNone(key.department_id)

    def test_store_failure_during_increment_propagates(self):
        allocator = make_allocator(counters=BrokenCounterStore())

        with self.assertRaises(DatabaseError):
            allocator.allocate(law_firm_id=1, department_id=10)

    def test_departments_have_independent_sequences(self):
        allocator = make_allocator()

        allocator.allocate(law_firm_id=1, department_id=10)

        self.assertEqual(allocator.allocate(law_firm_id=1, department_id=20), "ACME-LIT-2024-0001")

    def test_escalated_case_without_department_uses_firm_sequence(self):
        allocator = make_allocator()

        self.assertEqual(allocator.allocate(law_firm_id=1, escalated=True), "ACME-ESC-2024-0001")

    def test_missing_department_falls_back_to_timestamp_number(self):
        counters = FakeCounterStore()
        allocator = make_allocator(counters=counters)

        number = allocator.allocate(law_firm_id=1, department_id=999)

        self.assertRegex(number, FALLBACK_PATTERN)
        self.assertEqual(counters.sequences, {})

    def test_missing_firm_falls_back_to_timestamp_number(self):
        allocator = make_allocator()

        self.assertRegex(allocator.allocate(law_firm_id=42, department_id=10), FALLBACK_PATTERN)

    def test_taken_number_is_skipped(self):
        allocator = make_allocator(cases=FakeCaseIndex({"ACME-CC-2024-0001"}, highest=0))

        self.assertEqual(allocator.allocate(law_firm_id=1, department_id=10), "ACME-CC-2024-0002")

    def test_exhausted_retries_fall_back_and_warn(self):
        counters = FakeCounterStore()
        allocator = make_allocator(cases=FakeCaseIndex(always_taken=True), counters=counters)

        with self.assertLogs("apps.cases.numbering", level="WARNING") as logs:
            number = allocator.allocate(law_firm_id=1, department_id=10)

        self.assertRegex(number, FALLBACK_PATTERN)
        self.assertEqual(counters.increments, MAX_ALLOCATION_RETRIES)
        self.assertIn("needs reconciliation", logs.output[-1])

    def test_sequence_past_four_digits_widens(self):
        allocator = make_allocator(cases=FakeCaseIndex(highest=9999))

        self.assertEqual(allocator.allocate(law_firm_id=1, department_id=10), "ACME-CC-2024-10000")

    def test_year_comes_from_injected_clock(self):
        counters = FakeCounterStore()
        allocator = make_allocator(counters=counters, today=date(2031, 1, 1))

        self.assertEqual(allocator.allocate(law_firm_id=1, department_id=10), "ACME-CC-2031-0001")

    def test_partition_key_string(self):
        key = PartitionKey(year=2024, prefix="ACME-ESC", law_firm_id=1, department_id=None, escalated=True)

        self.assertEqual(key.as_key(), "2024:ACME-ESC:1:-:1")


class CaseNumberingDatabaseTests(TestCase):
    def setUp(self):
        self.year = timezone.localdate().year
        self.firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")
        self.credit = Department.objects.create(
            law_firm=self.firm,
            name="Credit",
            code="cc",
            department_type="credit_collection",
        )
        self.legal = Department.objects.create(
            law_firm=self.firm,
            name="Litigation",
            code="LIT",
            department_type="legal",
        )

    def new_credit_case(self, **kwargs):
        return create_credit_case(
            law_firm=self.firm,
            department=kwargs.pop("department", self.credit),
            title=kwargs.pop("title", "Unpaid invoice"),
            debtor_name="Debtor Ltd",
            debt_amount=Decimal("1500.00"),
            **kwargs,
        )

    def test_credit_cases_are_numbered_in_order(self):
        first = self.new_credit_case()
        second = self.new_credit_case()

        self.assertEqual(first.case_number, f"ACME-CC-{self.year}-0001")
        self.assertEqual(second.case_number, f"ACME-CC-{self.year}-0002")
        counter = CaseNumberCounter.objects.get()
        self.assertEqual(counter.sequence, 2)
        self.assertEqual(counter.prefix, "ACME-CC")
        self.assertFalse(counter.escalated)

    def test_counter_is_seeded_from_stored_cases(self):
        CreditCase.objects.create(
            law_firm=self.firm,
            department=self.credit,
            title="Imported",
            debtor_name="Old Debtor",
            case_number=f"ACME-CC-{self.year}-0007",
        )
        self.assertFalse(CaseNumberCounter.objects.exists())

        self.assertEqual(self.new_credit_case().case_number, f"ACME-CC-{self.year}-0008")

    def test_number_taken_in_another_case_table_is_skipped(self):
        self.new_credit_case()
        LegalCase.objects.create(
            law_firm=self.firm,
            title="Imported",
            case_type="civil",
            case_number=f"ACME-CC-{self.year}-0002",
        )

        self.assertEqual(self.new_credit_case().case_number, f"ACME-CC-{self.year}-0003")

    def test_legal_cases_use_their_department_code(self):
        legal_case = create_legal_case(
            law_firm=self.firm,
            department=self.legal,
            title="Contract dispute",
            case_type="civil",
        )

        self.assertEqual(legal_case.case_number, f"ACME-LIT-{self.year}-0001")

    def test_escalation_uses_separate_sequence(self):
        credit_case = self.new_credit_case()

        legal_case = escalate_credit_case(credit_case, filing_fee_amount=Decimal("2500"))

        self.assertEqual(legal_case.case_number, f"ACME-ESC-{self.year}-0001")
        self.assertEqual(legal_case.escalated_from_id, credit_case.id)
        self.assertEqual(legal_case.case_type, "debt_collection")
        credit_case.refresh_from_db()
        self.assertEqual(credit_case.status, "escalated_to_legal")
        self.assertEqual(self.new_credit_case().case_number, f"ACME-CC-{self.year}-0002")

    def test_escalations_with_and_without_department_share_a_sequence(self):
        first = escalate_credit_case(self.new_credit_case(), department=self.legal)
        second = escalate_credit_case(self.new_credit_case())

        self.assertEqual(first.case_number, f"ACME-ESC-{self.year}-0001")
        self.assertEqual(second.case_number, f"ACME-ESC-{self.year}-0002")
        counter = CaseNumberCounter.objects.get(escalated=True)
        self.assertIsNone(counter.department_id)
        self.assertEqual(counter.sequence, 2)

    def test_escalating_twice_is_refused(self):
        credit_case = self.new_credit_case()
        escalate_credit_case(credit_case)

        with self.assertRaises(CaseWorkflowError):
            escalate_credit_case(credit_case)
        self.assertEqual(LegalCase.objects.count(), 1)

    def test_case_without_department_gets_fallback_number(self):
        credit_case = self.new_credit_case(department=None)

        self.assertRegex(credit_case.case_number, FALLBACK_PATTERN)
        self.assertFalse(CaseNumberCounter.objects.exists())

    def test_unknown_or_foreign_department_gets_fallback_number(self):
        other_firm = LawFirm.objects.create(name="Other", firm_code="OTH")
        foreign = Department.objects.create(
            law_firm=other_firm,
            name="Credit",
            code="CC",
            department_type="credit_collection",
        )
        allocator = database_allocator()

        self.assertRegex(allocator.allocate(law_firm_id=self.firm.id, department_id=999999), FALLBACK_PATTERN)
        self.assertRegex(allocator.allocate(law_firm_id=self.firm.id, department_id=foreign.id), FALLBACK_PATTERN)

    def test_explicit_case_number_is_kept(self):
        credit_case = CreditCase.objects.create(
            law_firm=self.firm,
            department=self.credit,
            title="Manual",
            debtor_name="Debtor",
            case_number="MANUAL-1",
        )

        self.assertEqual(credit_case.case_number, "MANUAL-1")

    def test_blank_firm_code_uses_default_prefix(self):
        firm = LawFirm.objects.create(name="No Code", firm_code=" ")
        department = Department.objects.create(
            law_firm=firm,
            name="Credit",
            code="CC",
            department_type="credit_collection",
        )

        self.assertEqual(
            DatabaseFirmDirectory().resolve(law_firm_id=firm.id, department_id=department.id),
            ("LEG", "CC"),
        )


class DatabaseStoreTests(TestCase):
    def setUp(self):
        self.firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")
        self.key = PartitionKey(year=2024, prefix="ACME-ESC", law_firm_id=self.firm.id, department_id=None, escalated=True)

    def test_insert_if_absent_does_not_overwrite(self):
        store = DatabaseCounterStore()

        store.insert_if_absent(self.key, 4)
        store.insert_if_absent(self.key, 0)

        self.assertEqual(CaseNumberCounter.objects.get(key=self.key.as_key()).sequence, 4)
        self.assertEqual(store.increment_and_get(self.key), 5)

    def test_increment_without_counter_fails(self):
        with self.assertRaises(CaseNumberCounter.DoesNotExist):
            DatabaseCounterStore().increment_and_get(self.key)

    def test_highest_sequence_is_numeric(self):
        for number in ("ACME-ESC-2024-9999", "ACME-ESC-2024-10000", "ACME-ESC-2024-0005-DUP-1", "ACME-ESC-2023-20000"):
            LegalCase.objects.create(law_firm=self.firm, title=number, case_type="civil", case_number=number)

        self.assertEqual(DatabaseCaseIndex().highest_sequence("ACME-ESC", 2024), 10000)

    def test_number_exists_ignores_the_case_being_saved(self):
        legal_case = LegalCase.objects.create(
            law_firm=self.firm,
            title="Existing",
            case_type="civil",
            case_number="ACME-ESC-2024-0001",
        )
        index = DatabaseCaseIndex()

        self.assertTrue(index.number_exists("ACME-ESC-2024-0001"))
        self.assertFalse(index.number_exists("ACME-ESC-2024-0001", exclude=legal_case))
        self.assertFalse(index.number_exists("ACME-ESC-2024-0002"))


class FixDuplicateCaseNumbersCommandTests(TestCase):
    def setUp(self):
        firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")
        self.credit_case = CreditCase.objects.create(
            law_firm=firm,
            title="First",
            debtor_name="Debtor",
            case_number="ACME-CC-2024-0001",
        )
        self.legal_case = LegalCase.objects.create(
            law_firm=firm,
            title="Second",
            case_type="civil",
            case_number="ACME-CC-2024-0001",
        )
        LegalCase.objects.filter(pk=self.legal_case.pk).update(
            created_at=self.credit_case.created_at + timedelta(minutes=5)
        )

    def test_later_duplicate_is_renamed(self):
        out = StringIO()
        call_command("fix_duplicate_case_numbers", stdout=out)

        self.credit_case.refresh_from_db()
        self.legal_case.refresh_from_db()
        self.assertEqual(self.credit_case.case_number, "ACME-CC-2024-0001")
        self.assertEqual(self.legal_case.case_number, "ACME-CC-2024-0001-DUP-1")
        self.assertIn("renamed 1 cases", out.getvalue())

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command("fix_duplicate_case_numbers", "--dry-run", stdout=out)

        self.legal_case.refresh_from_db()
        self.assertEqual(self.legal_case.case_number, "ACME-CC-2024-0001")
        self.assertIn("1 cases would be renamed", out.getvalue())


class CaseViewTests(TestCase):
    def setUp(self):
        self.year = timezone.localdate().year
        self.firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")
        self.credit = Department.objects.create(
            law_firm=self.firm,
            name="Credit",
            code="CC",
            department_type="credit_collection",
        )
        self.login("law_firm_admin")

    def login(self, role):
        session = self.client.session
        session["role"] = role
        session["law_firm_id"] = self.firm.id
        session.save()

    def test_create_credit_case_assigns_number(self):
        response = self.client.post(
            reverse("credit_case_collection"),
            data={
                "title": "Unpaid rent",
                "debtor_name": "Tenant",
                "debt_amount": "45000",
                "department_id": self.credit.id,
            },
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["case_number"], f"ACME-CC-{self.year}-0001")

        response = self.client.get(reverse("credit_case_collection"))
        self.assertEqual(response.json()["count"], 1)

    def test_create_credit_case_validates_payload(self):
        response = self.client.post(
            reverse("credit_case_collection"),
            data={"title": "Missing debtor", "debt_amount": "-1"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)
        errors = response.json()["errors"]
        self.assertIn("debtor_name", errors)
        self.assertIn("debt_amount", errors)

    def test_escalate_endpoint(self):
        credit_case = create_credit_case(
            law_firm=self.firm,
            department=self.credit,
            title="Unpaid rent",
            debtor_name="Tenant",
        )
        url = reverse("credit_case_escalate", args=[credit_case.id])

        response = self.client.post(url, data={"filing_fee_amount": "3000"}, content_type="application/json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["case_number"], f"ACME-ESC-{self.year}-0001")

        response = self.client.post(url, data={}, content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_debt_collector_cannot_escalate(self):
        credit_case = create_credit_case(
            law_firm=self.firm,
            department=self.credit,
            title="Unpaid rent",
            debtor_name="Tenant",
        )
        self.login("debt_collector")

        response = self.client.post(
            reverse("credit_case_escalate", args=[credit_case.id]),
            data={},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 403)

    def test_create_legal_case(self):
        self.login("legal_head")

        response = self.client.post(
            reverse("legal_case_collection"),
            data={"title": "Contract dispute", "case_type": "civil"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertRegex(response.json()["data"]["case_number"], FALLBACK_PATTERN)
