import json
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from apps.accounts.models import Department, LawFirm, Member
from apps.cases.models import Payment

from .breakdown import decompose_yearly_target, period_target, week_day_range, weeks_in_month
from .models import RevenueTarget
from .performance import period_date_range, performance_status
from .services import upsert_revenue_target


class RevenueTargetBreakdownTests(SimpleTestCase):
    def test_monthly_targets_sum_to_yearly_target(self):
        months = decompose_yearly_target(120000, 2024)

        self.assertEqual(len(months), 12)
        self.assertEqual([row["month"] for row in months], list(range(1, 13)))
        self.assertAlmostEqual(sum(row["target"] for row in months), 120000, delta=1e-6)

    def test_weekly_and_daily_targets_sum_to_month_target(self):
        for month in decompose_yearly_target(120000, 2024):
            weekly_total = sum(week["target"] for week in month["weekly_targets"])
            daily_total = sum(
                day["target"]
                for week in month["weekly_targets"]
                for day in week["daily_targets"]
            )
            self.assertAlmostEqual(weekly_total, month["target"], delta=1e-6)
            self.assertAlmostEqual(daily_total, month["target"], delta=1e-6)

    def test_days_are_numbered_sequentially_through_the_month(self):
        march = decompose_yearly_target(120000, 2023)[2]
        days = [day["day"] for week in march["weekly_targets"] for day in week["daily_targets"]]

        self.assertEqual(days, list(range(1, 32)))
        self.assertEqual([week["week"] for week in march["weekly_targets"]], [1, 2, 3, 4, 5])

    def test_february_day_count_follows_leap_years(self):
        leap_february = decompose_yearly_target(120000, 2024)[1]
        plain_february = decompose_yearly_target(120000, 2023)[1]

        leap_days = [day for week in leap_february["weekly_targets"] for day in week["daily_targets"]]
        plain_days = [day for week in plain_february["weekly_targets"] for day in week["daily_targets"]]
        self.assertEqual(len(leap_days), 29)
        self.assertEqual(len(plain_days), 28)
        self.assertEqual(len(leap_february["weekly_targets"]), 5)
        self.assertEqual(len(plain_february["weekly_targets"]), 4)

    def test_repeated_breakdown_is_identical(self):
        first = decompose_yearly_target(987654.32, 2025)
        second = decompose_yearly_target(987654.32, 2025)

        self.assertEqual(json.dumps(first), json.dumps(second))

    def test_january_daily_targets_come_from_the_month_total(self):
        january = decompose_yearly_target(1200000, 2024)[0]

        self.assertEqual(january["target"], 100000)
        weeks = january["weekly_targets"]
        self.assertEqual([len(week["daily_targets"]) for week in weeks], [7, 7, 7, 7, 3])
        for week in weeks:
            self.assertEqual(week["target"], 20000)
        for week in weeks:
            for day in week["daily_targets"]:
                self.assertAlmostEqual(day["target"], 100000 / 31, delta=1e-9)

        final_week_days = sum(day["target"] for day in weeks[-1]["daily_targets"])
        self.assertAlmostEqual(final_week_days, 9677.42, places=2)
        self.assertNotAlmostEqual(final_week_days, weeks[-1]["target"], places=2)

    def test_zero_target_breaks_down_to_zeros(self):
        months = decompose_yearly_target(0, 2024)

        self.assertTrue(all(row["target"] == 0 for row in months))

    def test_week_day_range_truncates_final_week(self):
        self.assertEqual(week_day_range(2023, 2, 1), (1, 7))
        self.assertEqual(week_day_range(2023, 2, 4), (22, 28))
        self.assertEqual(week_day_range(2024, 2, 5), (29, 29))
        self.assertEqual(week_day_range(2024, 1, 5), (29, 31))
        self.assertEqual(weeks_in_month(2023, 2), 4)
        self.assertEqual(weeks_in_month(2024, 2), 5)

    def test_period_target_picks_the_requested_level(self):
        months = decompose_yearly_target(1200000, 2024)

        self.assertEqual(period_target(months, 1200000), 1200000)
        self.assertEqual(period_target(months, 1200000, month=1), 100000)
        self.assertEqual(period_target(months, 1200000, month=1, week=5), 20000)
        self.assertAlmostEqual(period_target(months, 1200000, month=1, week=5, day=30), 100000 / 31)
        self.assertAlmostEqual(period_target(months, 1200000, month=1, day=30), 100000 / 31)

    def test_period_target_falls_back_to_month_when_breakdown_missing_week(self):
        months = decompose_yearly_target(1200000, 2023)

        self.assertEqual(period_target(months, 1200000, month=2, week=5), 100000)


class PerformanceHelperTests(SimpleTestCase):
    def test_period_date_range(self):
        self.assertEqual(
            [value.isoformat() for value in period_date_range(2024)],
            ["2024-01-01", "2024-12-31"],
        )
        self.assertEqual(
            [value.isoformat() for value in period_date_range(2024, 2)],
            ["2024-02-01", "2024-02-29"],
        )
        self.assertEqual(
            [value.isoformat() for value in period_date_range(2024, 1, week=5)],
            ["2024-01-29", "2024-01-31"],
        )
        self.assertEqual(
            [value.isoformat() for value in period_date_range(2024, 3, day=15)],
            ["2024-03-15", "2024-03-15"],
        )

    def test_performance_status_thresholds(self):
        self.assertEqual(performance_status(100), "on_track")
        self.assertEqual(performance_status(85.5), "at_risk")
        self.assertEqual(performance_status(80), "at_risk")
        self.assertEqual(performance_status(79.99), "behind")


class RevenueTargetUpsertTests(TestCase):
    def setUp(self):
        self.firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")
        self.credit = Department.objects.create(
            law_firm=self.firm,
            name="Credit",
            code="CC",
            department_type="credit_collection",
        )

    def test_upsert_creates_then_replaces_breakdown(self):
        year = timezone.localdate().year
        target, created = upsert_revenue_target(
            law_firm=self.firm,
            department=self.credit,
            year=year,
            yearly_target=Decimal("120000"),
        )
        self.assertTrue(created)
        self.assertEqual(target.monthly_targets[0]["target"], 10000)

        updated, created = upsert_revenue_target(
            law_firm=self.firm,
            department=self.credit,
            year=year,
            yearly_target=Decimal("240000"),
        )
        self.assertFalse(created)
        self.assertEqual(updated.id, target.id)
        self.assertEqual(RevenueTarget.objects.count(), 1)

        updated.refresh_from_db()
        self.assertEqual(len(updated.monthly_targets), 12)
        self.assertEqual(updated.monthly_targets[0]["target"], 20000)

    def test_firm_wide_and_department_targets_coexist(self):
        year = timezone.localdate().year
        upsert_revenue_target(law_firm=self.firm, department=None, year=year, yearly_target=Decimal("1000"))
        upsert_revenue_target(law_firm=self.firm, department=self.credit, year=year, yearly_target=Decimal("500"))
        upsert_revenue_target(law_firm=self.firm, department=None, year=year, yearly_target=Decimal("2000"))

        self.assertEqual(RevenueTarget.objects.count(), 2)
        firm_wide = RevenueTarget.objects.get(department__isnull=True)
        self.assertEqual(firm_wide.yearly_target, Decimal("2000"))

    def test_upsert_updates_row_created_by_a_concurrent_request(self):
        year = timezone.localdate().year
        competing = RevenueTarget.objects.create(
            law_firm=self.firm,
            department=self.credit,
            year=year,
            yearly_target=Decimal("1000"),
        )

        # The first lookup misses the row the other request is committing.
        with patch("apps.targets.services._locked_target", side_effect=[None, competing]):
            target, created = upsert_revenue_target(
                law_firm=self.firm,
                department=self.credit,
                year=year,
                yearly_target=Decimal("240000"),
            )

        self.assertFalse(created)
        self.assertEqual(target.id, competing.id)
        self.assertEqual(RevenueTarget.objects.count(), 1)
        competing.refresh_from_db()
        self.assertEqual(competing.yearly_target, Decimal("240000"))
        self.assertEqual(competing.monthly_targets[0]["target"], 20000)

    def test_second_firm_wide_target_for_same_year_is_rejected(self):
        year = timezone.localdate().year
        RevenueTarget.objects.create(law_firm=self.firm, year=year, yearly_target=Decimal("1000"))

        with self.assertRaises(IntegrityError), transaction.atomic():
            RevenueTarget.objects.create(law_firm=self.firm, year=year, yearly_target=Decimal("2000"))


class RevenueTargetViewTests(TestCase):
    def setUp(self):
        self.year = timezone.localdate().year
        self.firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")
        self.other_firm = LawFirm.objects.create(name="Other", firm_code="OTH")
        self.credit = Department.objects.create(
            law_firm=self.firm,
            name="Credit",
            code="CC",
            department_type="credit_collection",
        )
        self.admin = Member.objects.create(
            law_firm=self.firm,
            name="Admin",
            email="admin@acme.test",
            role="law_firm_admin",
        )
        self.login(role="law_firm_admin", member=self.admin)

    def login(self, *, role, member=None, department=None):
        session = self.client.session
        session["role"] = role
        session["law_firm_id"] = self.firm.id
        session["member_id"] = member.id if member else None
        session["department_id"] = department.id if department else None
        session.save()

    def post_target(self, payload):
        return self.client.post(
            reverse("revenue_target_collection"),
            data=payload,
            content_type="application/json",
        )

    def test_create_then_update_target(self):
        response = self.post_target({"year": self.year, "yearly_target": "120000", "department_id": self.credit.id})
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(len(body["data"]["monthly_targets"]), 12)
        self.assertEqual(body["data"]["created_by_id"], self.admin.id)

        response = self.post_target({"year": self.year, "yearly_target": "240000", "department_id": self.credit.id})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Revenue target updated successfully")
        target = RevenueTarget.objects.get(department=self.credit, year=self.year)
        self.assertEqual(target.monthly_targets[0]["target"], 20000)

    def test_past_year_is_rejected(self):
        response = self.post_target({"year": self.year - 1, "yearly_target": "1000"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("year", response.json()["errors"])
        self.assertFalse(RevenueTarget.objects.exists())

    def test_non_positive_target_is_rejected(self):
        response = self.post_target({"year": self.year, "yearly_target": "0"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("yearly_target", response.json()["errors"])

    def test_invalid_json_is_rejected(self):
        response = self.client.post(
            reverse("revenue_target_collection"),
            data="{not json",
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)

    def test_department_head_must_name_a_department(self):
        self.login(role="credit_head", department=self.credit)

        response = self.post_target({"year": self.year, "yearly_target": "1000"})

        self.assertEqual(response.status_code, 403)

    def test_department_from_another_firm_is_not_found(self):
        foreign = Department.objects.create(
            law_firm=self.other_firm,
            name="Credit",
            code="CC",
            department_type="credit_collection",
        )

        response = self.post_target({"year": self.year, "yearly_target": "1000", "department_id": foreign.id})

        self.assertEqual(response.status_code, 404)

    def test_debt_collector_cannot_set_targets(self):
        self.login(role="debt_collector")

        response = self.post_target({"year": self.year, "yearly_target": "1000"})

        self.assertEqual(response.status_code, 403)

    def test_list_is_scoped_to_department_for_heads(self):
        upsert_revenue_target(law_firm=self.firm, department=None, year=self.year, yearly_target=Decimal("1000"))
        upsert_revenue_target(law_firm=self.firm, department=self.credit, year=self.year, yearly_target=Decimal("500"))

        response = self.client.get(reverse("revenue_target_collection"))
        self.assertEqual(response.json()["count"], 2)

        self.login(role="credit_head", department=self.credit)
        response = self.client.get(reverse("revenue_target_collection"))
        body = response.json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["data"][0]["department_code"], "CC")

    def test_performance_without_targets_reports_no_target(self):
        response = self.client.get(reverse("revenue_target_performance"))

        self.assertEqual(response.status_code, 200)
        summary = response.json()["data"]["summary"]
        self.assertEqual(summary["overall_status"], "no_target")
        self.assertEqual(summary["total_target"], 0)

    def test_performance_compares_month_target_with_payments(self):
        now = timezone.now()
        today = timezone.localdate()
        upsert_revenue_target(law_firm=self.firm, department=None, year=self.year, yearly_target=Decimal("120000"))
        Payment.objects.create(
            law_firm=self.firm,
            amount=Decimal("5000"),
            purpose="service_charge",
            status="completed",
            paid_at=now,
        )
        Payment.objects.create(
            law_firm=self.firm,
            amount=Decimal("9000"),
            purpose="service_charge",
            status="pending",
            paid_at=now,
        )

        response = self.client.get(reverse("revenue_target_performance"), {"month": today.month})

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        row = data["performance"][0]
        self.assertEqual(row["target"]["period_target"], 10000)
        self.assertEqual(row["actual"]["total"], 5000)
        self.assertEqual(row["performance"]["percentage"], 50)
        self.assertEqual(row["performance"]["status"], "behind")
        self.assertEqual(data["summary"]["period"]["month"], today.month)

    def test_performance_rejects_day_outside_month(self):
        response = self.client.get(
            reverse("revenue_target_performance"),
            {"year": 2023, "month": 2, "day": 30},
        )

        self.assertEqual(response.status_code, 400)

    def test_delete_requires_admin(self):
        target, _ = upsert_revenue_target(
            law_firm=self.firm,
            department=None,
            year=self.year,
            yearly_target=Decimal("1000"),
        )

        self.login(role="accountant")
        response = self.client.post(reverse("revenue_target_delete", args=[target.id]))
        self.assertEqual(response.status_code, 403)
        self.assertTrue(RevenueTarget.objects.filter(id=target.id).exists())

        self.login(role="law_firm_admin", member=self.admin)
        response = self.client.post(reverse("revenue_target_delete", args=[target.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(RevenueTarget.objects.filter(id=target.id).exists())


class RecalculateRevenueTargetsCommandTests(TestCase):
    def test_rebuilds_stale_breakdowns(self):
        firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")
        stale = RevenueTarget.objects.create(law_firm=firm, year=2030, yearly_target=Decimal("120000"))
        other_year = RevenueTarget.objects.create(law_firm=firm, year=2031, yearly_target=Decimal("120000"))

        out = StringIO()
        call_command("recalculate_revenue_targets", "--year", "2030", stdout=out)

        stale.refresh_from_db()
        other_year.refresh_from_db()
        self.assertEqual(len(stale.monthly_targets), 12)
        self.assertEqual(stale.monthly_targets[0]["target"], 10000)
        self.assertEqual(other_year.monthly_targets, [])
        self.assertIn("recalculated 1 revenue targets", out.getvalue())
