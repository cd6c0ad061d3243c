import logging
from decimal import Decimal

from django.db import transaction

from apps.accounts.models import Department, LawFirm, Member

from .exceptions import CaseWorkflowError
from .models import (
    CREDIT_STATUS_ESCALATED,
    LEGAL_CASE_TYPE_DEBT_COLLECTION,
    CreditCase,
    LegalCase,
)

logger = logging.getLogger(__name__)


def create_credit_case(
    *,
    law_firm: LawFirm,
    department: Department | None,
    title: str,
    debtor_name: str,
    debt_amount: Decimal = Decimal("0"),
    description: str = "",
    created_by: Member | None = None,
) -> CreditCase:
    credit_case = CreditCase.objects.create(
        law_firm=law_firm,
        department=department,
        title=title,
        debtor_name=debtor_name,
        debt_amount=debt_amount,
        description=description,
        created_by=created_by,
    )
    logger.info("Created credit case %s for firm %s", credit_case.case_number, law_firm.firm_code)
    return credit_case


def create_legal_case(
    *,
    law_firm: LawFirm,
    department: Department | None,
    title: str,
    case_type: str,
    filing_fee_amount: Decimal = Decimal("0"),
    description: str = "",
    created_by: Member | None = None,
) -> LegalCase:
    legal_case = LegalCase.objects.create(
        law_firm=law_firm,
        department=department,
        title=title,
        case_type=case_type,
        filing_fee_amount=filing_fee_amount,
        description=description,
        created_by=created_by,
    )
    logger.info("Created legal case %s for firm %s", legal_case.case_number, law_firm.firm_code)
    return legal_case


@transaction.atomic
def escalate_credit_case(
    credit_case: CreditCase,
    *,
    department: Department | None = None,
    filing_fee_amount: Decimal = Decimal("0"),
    escalated_by: Member | None = None,
) -> LegalCase:
    """Open a legal case for a credit case and mark the credit case escalated.

    The legal case draws its number from the firm's escalation sequence,
    which is independent of the intake sequence of the same department.
    """
    credit_case = CreditCase.objects.select_for_update().get(pk=credit_case.pk)
    if credit_case.status == CREDIT_STATUS_ESCALATED or LegalCase.objects.filter(escalated_from=credit_case).exists():
        raise CaseWorkflowError(f"Credit case {credit_case.case_number} has already been escalated")

    legal_case = LegalCase.objects.create(
        law_firm=credit_case.law_firm,
        department=department,
        title=credit_case.title,
        description=credit_case.description,
        case_type=LEGAL_CASE_TYPE_DEBT_COLLECTION,
        filing_fee_amount=filing_fee_amount,
        created_by=escalated_by,
        escalated_from=credit_case,
    )
    credit_case.status = CREDIT_STATUS_ESCALATED
    credit_case.save(update_fields=["status", "updated_at"])
    logger.info("Escalated credit case %s to legal case %s", credit_case.case_number, legal_case.case_number)
    return legal_case
