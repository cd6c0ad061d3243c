from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods, require_POST

from apps.accounts.auth import (
    ROLE_ADVOCATE,
    ROLE_CREDIT_HEAD,
    ROLE_DEBT_COLLECTOR,
    ROLE_LAW_FIRM_ADMIN,
    ROLE_LEGAL_HEAD,
    require_roles,
    session_context,
)
from apps.accounts.models import Department, LawFirm, Member
from apps.common.api import InvalidPayload, form_error_response, json_error, parse_json_body

from .exceptions import CaseWorkflowError
from .forms import CreditCaseForm, EscalationForm, LegalCaseForm
from .models import CreditCase, LegalCase
from .services import create_credit_case, create_legal_case, escalate_credit_case

CASE_LIST_LIMIT = 100


def _firm_and_member(request: HttpRequest):
    context = session_context(request)
    law_firm = get_object_or_404(LawFirm, id=context["law_firm_id"])
    member = None
    if context["member_id"]:
        member = Member.objects.filter(id=context["member_id"], law_firm=law_firm).first()
    return law_firm, member


def _firm_department(law_firm: LawFirm, department_id: int | None) -> Department | None:
    if department_id is None:
        return None
    return get_object_or_404(Department, id=department_id, law_firm=law_firm)


def _case_payload(case) -> dict:
    payload = {
        "id": case.id,
        "case_number": case.case_number,
        "title": case.title,
        "status": case.status,
        "law_firm_id": case.law_firm_id,
        "department_id": case.department_id,
        "created_at": case.created_at.isoformat(),
    }
    if isinstance(case, CreditCase):
        payload["debtor_name"] = case.debtor_name
        payload["debt_amount"] = str(case.debt_amount)
    else:
        payload["case_type"] = case.case_type
        payload["filing_fee_amount"] = str(case.filing_fee_amount)
        payload["escalated_from_id"] = case.escalated_from_id
    return payload


@require_http_methods(["GET", "POST"])
@require_roles(ROLE_LAW_FIRM_ADMIN, ROLE_CREDIT_HEAD, ROLE_DEBT_COLLECTOR)
def credit_case_collection(request: HttpRequest) -> HttpResponse:
    law_firm, member = _firm_and_member(request)
    if request.method == "GET":
        cases = CreditCase.objects.filter(law_firm=law_firm).order_by("-created_at")[:CASE_LIST_LIMIT]
        data = [_case_payload(case) for case in cases]
        return JsonResponse({"success": True, "count": len(data), "data": data})

    try:
        payload = parse_json_body(request)
    except InvalidPayload as exc:
        return json_error(str(exc))
    form = CreditCaseForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    credit_case = create_credit_case(
        law_firm=law_firm,
        department=_firm_department(law_firm, form.cleaned_data["department_id"]),
        title=form.cleaned_data["title"],
        debtor_name=form.cleaned_data["debtor_name"],
        debt_amount=form.cleaned_data["debt_amount"],
        description=form.cleaned_data["description"],
        created_by=member,
    )
    return JsonResponse({"success": True, "data": _case_payload(credit_case)}, status=201)


@require_http_methods(["GET", "POST"])
@require_roles(ROLE_LAW_FIRM_ADMIN, ROLE_LEGAL_HEAD, ROLE_ADVOCATE)
def legal_case_collection(request: HttpRequest) -> HttpResponse:
    law_firm, member = _firm_and_member(request)
    if request.method == "GET":
        cases = LegalCase.objects.filter(law_firm=law_firm).order_by("-created_at")[:CASE_LIST_LIMIT]
        data = [_case_payload(case) for case in cases]
        return JsonResponse({"success": True, "count": len(data), "data": data})

    try:
        payload = parse_json_body(request)
    except InvalidPayload as exc:
        return json_error(str(exc))
    form = LegalCaseForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    legal_case = create_legal_case(
        law_firm=law_firm,
        department=_firm_department(law_firm, form.cleaned_data["department_id"]),
        title=form.cleaned_data["title"],
        case_type=form.cleaned_data["case_type"],
        filing_fee_amount=form.cleaned_data["filing_fee_amount"] or 0,
        description=form.cleaned_data["description"],
        created_by=member,
    )
    return JsonResponse({"success": True, "data": _case_payload(legal_case)}, status=201)


@require_POST
@require_roles(ROLE_LAW_FIRM_ADMIN, ROLE_CREDIT_HEAD)
def credit_case_escalate(request: HttpRequest, case_id: int) -> HttpResponse:
    law_firm, member = _firm_and_member(request)
    credit_case = get_object_or_404(CreditCase, id=case_id, law_firm=law_firm)
    try:
        payload = parse_json_body(request)
    except InvalidPayload as exc:
        return json_error(str(exc))
    form = EscalationForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    try:
        legal_case = escalate_credit_case(
            credit_case,
            department=_firm_department(law_firm, form.cleaned_data["department_id"]),
            filing_fee_amount=form.cleaned_data["filing_fee_amount"] or 0,
            escalated_by=member,
        )
    except CaseWorkflowError as exc:
        return json_error(str(exc))
    return JsonResponse({"success": True, "data": _case_payload(legal_case)}, status=201)
