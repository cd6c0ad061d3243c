"""Yearly revenue target breakdown into month, week and day targets.

Every month gets an equal twelfth of the yearly target regardless of its
length. Weeks are counted from the 1st of the month in blocks of seven days,
the last block taking whatever is left. A month's target is split evenly
across its weeks and, separately, evenly across its days, so weekly and daily
targets each sum to the month target, while the days of a short final week do
not sum to that week's own target.

Amounts stay unrounded floats; rounding happens only when displaying them.
"""

import calendar
import math

DAYS_PER_WEEK = 7
MONTHS_PER_YEAR = 12


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def weeks_in_month(year: int, month: int) -> int:
    return math.ceil(days_in_month(year, month) / DAYS_PER_WEEK)


def week_day_range(year: int, month: int, week: int) -> tuple[int, int]:
    first_day = (week - 1) * DAYS_PER_WEEK + 1
    last_day = min(first_day + DAYS_PER_WEEK - 1, days_in_month(year, month))
    return first_day, last_day


def decompose_yearly_target(yearly_target, year: int) -> list[dict]:
    monthly_amount = float(yearly_target) / MONTHS_PER_YEAR
    monthly_targets = []
    for month in range(1, MONTHS_PER_YEAR + 1):
        month_days = days_in_month(year, month)
        month_weeks = weeks_in_month(year, month)
        weekly_amount = monthly_amount / month_weeks
        daily_amount = monthly_amount / month_days

        weekly_targets = []
        for week in range(1, month_weeks + 1):
            first_day, last_day = week_day_range(year, month, week)
            weekly_targets.append(
                {
                    "week": week,
                    "target": weekly_amount,
                    "daily_targets": [
                        {"day": day, "target": daily_amount}
                        for day in range(first_day, last_day + 1)
                    ],
                }
            )

        monthly_targets.append(
            {
                "month": month,
                "target": monthly_amount,
                "weekly_targets": weekly_targets,
            }
        )
    return monthly_targets


def period_target(monthly_targets, yearly_target, *, month=None, week=None, day=None) -> float:
    target = float(yearly_target)
    if not month:
        return target
    month_row = next((row for row in monthly_targets if row["month"] == month), None)
    if not month_row:
        return target
    target = month_row["target"]

    if week:
        week_row = next((row for row in month_row["weekly_targets"] if row["week"] == week), None)
        if not week_row:
            return target
        target = week_row["target"]
        if day:
            day_row = next((row for row in week_row["daily_targets"] if row["day"] == day), None)
            if day_row:
                target = day_row["target"]
        return target

    if day:
        for week_row in month_row["weekly_targets"]:
            day_row = next((row for row in week_row["daily_targets"] if row["day"] == day), None)
            if day_row:
                return day_row["target"]
    return target
