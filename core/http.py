"""
JSON request/response helpers shared by ShiftDesk views.

Views parse their input with request_data(), hand it to a service, and turn
the OperationResult into a response with result_response(). Rejection reasons
map to HTTP statuses in one place:

    permission_denied     → 403
    not_found             → 404
    duplicate_assignment  → 409
    anything else         → 400
"""

import json
from datetime import date

from django.http import HttpRequest, JsonResponse

from core.results import OperationResult, Reason

REASON_STATUS = {
    Reason.PERMISSION_DENIED: 403,
    Reason.NOT_FOUND: 404,
    Reason.DUPLICATE_ASSIGNMENT: 409,
}


def request_data(request: HttpRequest) -> dict:
    """
    Return the request payload as a dict.

    JSON bodies are decoded; form posts fall back to request.POST. A malformed
    JSON body yields an empty dict so the service reports what is missing.
    """
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
        return data if isinstance(data, dict) else {}
    return request.POST.dict()


def parse_date(raw, default=None):
    """Parse YYYY-MM-DD, returning default when missing or malformed."""
    if not raw:
        return default
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        return default


def error_response(reason: str, message: str, status: int = None) -> JsonResponse:
    return JsonResponse(
        {"success": False, "error": str(reason), "message": message},
        status=status or REASON_STATUS.get(reason, 400),
    )


def result_response(result: OperationResult, serializer=None, status: int = 200) -> JsonResponse:
    """
    Convert an OperationResult into a JsonResponse.

    Args:
        result: The service outcome.
        serializer: Optional callable turning result.obj into a dict, stored
                    under "data" on success.
        status: HTTP status for success (e.g. 201 on create).
    """
    payload = result.as_dict()
    if not result.ok:
        return JsonResponse(payload, status=REASON_STATUS.get(result.reason, 400))
    if serializer is not None and result.obj is not None:
        payload["data"] = serializer(result.obj)
    return JsonResponse(payload, status=status)


def parse_int(raw, default=None):
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default
