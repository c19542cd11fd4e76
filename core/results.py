"""
Structured outcomes for ShiftDesk mutations.

Every mutating service operation returns an OperationResult instead of raising
for an expected rejection. The reason is drawn from a closed taxonomy so views
can map it to an HTTP status and the UI can template a message.

Usage:
    result = AssignmentService.request_join(actor=user, shift=shift, date=day)
    if not result.ok:
        return JsonResponse({"error": result.reason, "message": result.message}, status=400)
"""

from dataclasses import dataclass, field
from typing import Any

from django.db import models
from django.utils.translation import gettext_lazy as _


class Reason(models.TextChoices):
    """Rejection reasons surfaced to callers."""

    PERMISSION_DENIED = "permission_denied", _("Permission denied")
    NOT_FOUND = "not_found", _("Not found")
    INVALID_TIME_RANGE = "invalid_time_range", _("Invalid time range")
    OVERLAPPING_TIME_SLOTS = "overlapping_time_slots", _("Overlapping time slots")
    DUPLICATE_ASSIGNMENT = "duplicate_assignment", _("Duplicate assignment")
    INVARIANT_VIOLATION = "invariant_violation", _("Invariant violation")
    INVALID_TRANSITION = "invalid_transition", _("Invalid status transition")
    CAPACITY_EXCEEDED = "capacity_exceeded", _("Capacity exceeded")


@dataclass
class OperationResult:
    """
    The outcome of one mutating operation.

    Attributes:
        ok: True if the mutation was applied.
        reason: A Reason value when ok is False, empty otherwise.
        message: Human-readable explanation, safe to show to the end user.
        obj: The created or updated object on success.
        details: Extra machine-readable context (conflicting slot indices,
                 boundary adjustments, per-item results).
    """

    ok: bool
    reason: str = ""
    message: str = ""
    obj: Any = None
    details: dict = field(default_factory=dict)

    @classmethod
    def success(cls, obj=None, message: str = "", **details) -> "OperationResult":
        """Return a successful result carrying the affected object."""
        return cls(ok=True, message=message, obj=obj, details=details)

    @classmethod
    def failure(cls, reason: str, message: str, **details) -> "OperationResult":
        """Return a rejection with a taxonomy reason."""
        return cls(ok=False, reason=reason, message=message, details=details)

    @classmethod
    def denied(cls, message: str = "You don't have permission to do that.") -> "OperationResult":
        """Shortcut for the most common rejection."""
        return cls.failure(Reason.PERMISSION_DENIED, message)

    def as_dict(self) -> dict:
        """Serialize for a JSON response; the object itself is left to the caller."""
        payload = {"success": self.ok}
        if self.message:
            payload["message"] = self.message
        if not self.ok:
            payload["error"] = str(self.reason)
        if self.details:
            payload["details"] = self.details
        return payload
