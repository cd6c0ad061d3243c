import json

from django.http import HttpRequest, JsonResponse


class InvalidPayload(ValueError):
    pass


def parse_json_body(request: HttpRequest) -> dict:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (TypeError, ValueError) as exc:
        raise InvalidPayload("Request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise InvalidPayload("Request body must be a JSON object")
    return payload


def json_error(message: str, *, status: int = 400, **extra) -> JsonResponse:
    return JsonResponse({"success": False, "message": message, **extra}, status=status)


def form_error_response(form) -> JsonResponse:
    return json_error("Validation failed", errors=form.errors.get_json_data())


def to_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
