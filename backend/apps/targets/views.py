from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.accounts.auth import (
    ALL_ROLES,
    DEPARTMENT_HEAD_ROLES,
    ROLE_ACCOUNTANT,
    ROLE_LAW_FIRM_ADMIN,
    ROLE_SYSTEM_OWNER,
    require_roles,
    session_context,
)
from apps.accounts.models import Department, LawFirm, Member
from apps.common.api import InvalidPayload, form_error_response, json_error, parse_json_body, to_int

from .breakdown import days_in_month, weeks_in_month
from .forms import PerformanceQueryForm, RevenueTargetForm
from .models import RevenueTarget
from .performance import build_performance
from .services import upsert_revenue_target


def _target_payload(target: RevenueTarget) -> dict:
    return {
        "id": target.id,
        "year": target.year,
        "law_firm_id": target.law_firm_id,
        "department_id": target.department_id,
        "department_code": target.department.code if target.department else None,
        "yearly_target": float(target.yearly_target),
        "monthly_targets": target.monthly_targets,
        "created_by_id": target.created_by_id,
        "updated_by_id": target.updated_by_id,
        "is_active": target.is_active,
    }


def _scoped_department_id(context: dict, requested_id: int | None) -> int | None:
    # Department heads only ever see their own department.
    if requested_id is None and context["role"] in DEPARTMENT_HEAD_ROLES:
        return to_int(context["department_id"])
    return requested_id


def _list_targets(request: HttpRequest, law_firm: LawFirm, context: dict) -> HttpResponse:
    year = to_int(request.GET.get("year")) or timezone.localdate().year
    targets = RevenueTarget.objects.filter(law_firm=law_firm, year=year).select_related("department")
    department_id = _scoped_department_id(context, to_int(request.GET.get("department_id")))
    if department_id is not None:
        targets = targets.filter(department_id=department_id)
    data = [_target_payload(target) for target in targets]
    return JsonResponse({"success": True, "count": len(data), "data": data})


def _save_target(request: HttpRequest, law_firm: LawFirm, context: dict) -> HttpResponse:
    if context["role"] not in {ROLE_LAW_FIRM_ADMIN, ROLE_ACCOUNTANT, *DEPARTMENT_HEAD_ROLES}:
        return json_error("Not authorized", status=403)
    try:
        payload = parse_json_body(request)
    except InvalidPayload as exc:
        return json_error(str(exc))
    form = RevenueTargetForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    department_id = form.cleaned_data["department_id"]
    if context["role"] in DEPARTMENT_HEAD_ROLES and department_id is None:
        return json_error("Department heads must specify a department", status=403)
    department = None
    if department_id is not None:
        department = Department.objects.filter(id=department_id, law_firm=law_firm).first()
        if not department:
            return json_error("Department not found", status=404)

    member = None
    if context["member_id"]:
        member = Member.objects.filter(id=context["member_id"], law_firm=law_firm).first()

    target, created = upsert_revenue_target(
        law_firm=law_firm,
        department=department,
        year=form.cleaned_data["year"],
        yearly_target=form.cleaned_data["yearly_target"],
        member=member,
    )
    message = "Revenue target created successfully" if created else "Revenue target updated successfully"
    return JsonResponse(
        {"success": True, "message": message, "data": _target_payload(target)},
        status=201 if created else 200,
    )


@require_http_methods(["GET", "POST"])
@require_roles(*ALL_ROLES)
def revenue_target_collection(request: HttpRequest) -> HttpResponse:
    context = session_context(request)
    law_firm = get_object_or_404(LawFirm, id=context["law_firm_id"])
    if request.method == "GET":
        return _list_targets(request, law_firm, context)
    return _save_target(request, law_firm, context)


@require_GET
@require_roles(*ALL_ROLES)
def revenue_target_performance(request: HttpRequest) -> HttpResponse:
    context = session_context(request)
    law_firm = get_object_or_404(LawFirm, id=context["law_firm_id"])
    form = PerformanceQueryForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)

    year = form.cleaned_data["year"] or timezone.localdate().year
    month = form.cleaned_data["month"]
    week = form.cleaned_data["week"]
    day = form.cleaned_data["day"]
    if month and day and day > days_in_month(year, month):
        return json_error("Day is outside the month")
    if month and week and week > weeks_in_month(year, month):
        return json_error("Week is outside the month")

    department = None
    department_id = _scoped_department_id(context, form.cleaned_data["department_id"])
    if department_id is not None:
        department = get_object_or_404(Department, id=department_id, law_firm=law_firm)

    data = build_performance(
        law_firm=law_firm,
        year=year,
        month=month,
        week=week,
        day=day,
        department=department,
    )
    return JsonResponse({"success": True, "data": data})


@require_POST
@require_roles(ROLE_LAW_FIRM_ADMIN, ROLE_SYSTEM_OWNER)
def revenue_target_delete(request: HttpRequest, target_id: int) -> HttpResponse:
    context = session_context(request)
    target = get_object_or_404(RevenueTarget, id=target_id, law_firm_id=context["law_firm_id"])
    target.delete()
    return JsonResponse({"success": True, "message": "Revenue target deleted successfully"})
