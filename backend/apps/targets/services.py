import logging

from django.db import IntegrityError, transaction

from apps.accounts.models import Department, LawFirm, Member

from .models import RevenueTarget

logger = logging.getLogger(__name__)


def _locked_target(*, law_firm: LawFirm, department: Department | None, year: int) -> RevenueTarget | None:
    return (
        RevenueTarget.objects.select_for_update()
        .filter(year=year, law_firm=law_firm, department=department)
        .first()
    )


@transaction.atomic
def upsert_revenue_target(
    *,
    law_firm: LawFirm,
    department: Department | None,
    year: int,
    yearly_target,
    member: Member | None = None,
) -> tuple[RevenueTarget, bool]:
    target = _locked_target(law_firm=law_firm, department=department, year=year)
    created = target is None
    if created:
        target = RevenueTarget(
            year=year,
            law_firm=law_firm,
            department=department,
            yearly_target=yearly_target,
            created_by=member,
            updated_by=member,
        ).recalculate()
        try:
            with transaction.atomic():
                target.save()
        except IntegrityError:
            # A concurrent request created the same scope first; update its row instead.
            target = _locked_target(law_firm=law_firm, department=department, year=year)
            if target is None:
                raise
            created = False

    if not created:
        target.yearly_target = yearly_target
        target.updated_by = member
        target.is_active = True
        target.recalculate()
        target.save()
    logger.info(
        "%s revenue target %s for firm %s (%s): %s",
        "Created" if created else "Updated",
        year,
        law_firm.firm_code,
        department.code if department else "firm-wide",
        yearly_target,
    )
    return target, created
