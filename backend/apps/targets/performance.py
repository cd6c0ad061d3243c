from datetime import date

from django.db.models import Q, Sum

from apps.cases.models import (
    CREDIT_STATUS_RESOLVED,
    PAYMENT_STATUS_COMPLETED,
    REVENUE_PAYMENT_PURPOSES,
    CreditCase,
    LegalCase,
    Payment,
)

from .breakdown import days_in_month, period_target, week_day_range
from .models import RevenueTarget

STATUS_ON_TRACK = "on_track"
STATUS_AT_RISK = "at_risk"
STATUS_BEHIND = "behind"
STATUS_NO_TARGET = "no_target"
AT_RISK_THRESHOLD = 80


def period_date_range(year: int, month=None, week=None, day=None) -> tuple[date, date]:
    if not month:
        return date(year, 1, 1), date(year, 12, 31)
    if day:
        return date(year, month, day), date(year, month, day)
    if week:
        first_day, last_day = week_day_range(year, month, week)
        return date(year, month, first_day), date(year, month, last_day)
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def performance_status(percentage: float) -> str:
    if percentage >= 100:
        return STATUS_ON_TRACK
    if percentage >= AT_RISK_THRESHOLD:
        return STATUS_AT_RISK
    return STATUS_BEHIND


def _sum(query, field: str) -> float:
    total = query.aggregate(total=Sum(field))["total"]
    return float(total or 0)


def collect_actual_revenue(*, law_firm, start_date: date, end_date: date, department=None) -> float:
    payments = Payment.objects.filter(
        law_firm=law_firm,
        status=PAYMENT_STATUS_COMPLETED,
        purpose__in=REVENUE_PAYMENT_PURPOSES,
        paid_at__date__gte=start_date,
        paid_at__date__lte=end_date,
    )
    filing_fees = LegalCase.objects.filter(
        law_firm=law_firm,
        filing_fee_paid=True,
        filing_fee_paid_at__date__gte=start_date,
        filing_fee_paid_at__date__lte=end_date,
    )
    # Older resolved cases carry no resolved_at; their last update stands in for it.
    resolved_cases = CreditCase.objects.filter(law_firm=law_firm, status=CREDIT_STATUS_RESOLVED).filter(
        Q(resolved_at__date__gte=start_date, resolved_at__date__lte=end_date)
        | Q(resolved_at__isnull=True, updated_at__date__gte=start_date, updated_at__date__lte=end_date)
    )
    if department is not None:
        payments = payments.filter(department=department)
        filing_fees = filing_fees.filter(department=department)
        resolved_cases = resolved_cases.filter(department=department)

    return _sum(payments, "amount") + _sum(filing_fees, "filing_fee_amount") + _sum(resolved_cases, "debt_amount")


def build_performance(*, law_firm, year: int, month=None, week=None, day=None, department=None) -> dict:
    start_date, end_date = period_date_range(year, month, week, day)
    targets = RevenueTarget.objects.filter(law_firm=law_firm, year=year, is_active=True).select_related("department")
    if department is not None:
        targets = targets.filter(department=department)
    period = {"year": year, "month": month, "week": week, "day": day}

    if not targets.exists():
        actual = collect_actual_revenue(
            law_firm=law_firm,
            start_date=start_date,
            end_date=end_date,
            department=department,
        )
        return {
            "performance": [
                {
                    "target": None,
                    "actual": {"total": round(actual, 2)},
                    "performance": {
                        "percentage": 0,
                        "difference": round(-actual, 2),
                        "is_on_track": False,
                        "status": STATUS_NO_TARGET,
                    },
                }
            ],
            "summary": {
                "total_target": 0,
                "total_actual": round(actual, 2),
                "overall_percentage": 0,
                "overall_status": STATUS_NO_TARGET,
                "period": period,
            },
        }

    rows = []
    total_target = 0.0
    total_actual = 0.0
    for target in targets:
        target_amount = period_target(
            target.monthly_targets,
            target.yearly_target,
            month=month,
            week=week,
            day=day,
        )
        actual = collect_actual_revenue(
            law_firm=law_firm,
            start_date=start_date,
            end_date=end_date,
            department=target.department,
        )
        percentage = (actual / target_amount) * 100 if target_amount > 0 else 0
        total_target += target_amount
        total_actual += actual
        rows.append(
            {
                "target": {
                    "id": target.id,
                    "year": target.year,
                    "department_id": target.department_id,
                    "department_code": target.department.code if target.department else None,
                    "yearly_target": float(target.yearly_target),
                    "period_target": round(target_amount, 2),
                },
                "actual": {"total": round(actual, 2)},
                "performance": {
                    "percentage": round(percentage, 2),
                    "difference": round(actual - target_amount, 2),
                    "is_on_track": percentage >= 100,
                    "status": performance_status(percentage),
                },
            }
        )

    overall_percentage = (total_actual / total_target) * 100 if total_target > 0 else 0
    return {
        "performance": rows,
        "summary": {
            "total_target": round(total_target, 2),
            "total_actual": round(total_actual, 2),
            "overall_percentage": round(overall_percentage, 2),
            "overall_status": performance_status(overall_percentage),
            "period": period,
        },
    }
