from functools import wraps

from django.http import HttpRequest, HttpResponse, JsonResponse

ROLE_SYSTEM_OWNER = "system_owner"
ROLE_LAW_FIRM_ADMIN = "law_firm_admin"
ROLE_CREDIT_HEAD = "credit_head"
ROLE_LEGAL_HEAD = "legal_head"
ROLE_ACCOUNTANT = "accountant"
ROLE_DEBT_COLLECTOR = "debt_collector"
ROLE_ADVOCATE = "advocate"

DEPARTMENT_HEAD_ROLES = {ROLE_CREDIT_HEAD, ROLE_LEGAL_HEAD}
ALL_ROLES = (
    ROLE_SYSTEM_OWNER,
    ROLE_LAW_FIRM_ADMIN,
    ROLE_CREDIT_HEAD,
    ROLE_LEGAL_HEAD,
    ROLE_ACCOUNTANT,
    ROLE_DEBT_COLLECTOR,
    ROLE_ADVOCATE,
)

SESSION_ROLE_KEY = "role"
SESSION_LAW_FIRM_KEY = "law_firm_id"
SESSION_DEPARTMENT_KEY = "department_id"
SESSION_MEMBER_KEY = "member_id"


def session_context(request: HttpRequest) -> dict:
    return {
        "role": request.session.get(SESSION_ROLE_KEY),
        "law_firm_id": request.session.get(SESSION_LAW_FIRM_KEY),
        "department_id": request.session.get(SESSION_DEPARTMENT_KEY),
        "member_id": request.session.get(SESSION_MEMBER_KEY),
    }


def require_roles(*allowed_roles: str):
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
            role = request.session.get(SESSION_ROLE_KEY)
            if role not in allowed_roles:
                return JsonResponse({"success": False, "message": "Not authorized"}, status=403)
            if not request.session.get(SESSION_LAW_FIRM_KEY):
                return JsonResponse(
                    {"success": False, "message": "User must be associated with a law firm"},
                    status=403,
                )
            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator
