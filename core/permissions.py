"""
Permission mixins for ShiftDesk views.

Every view that reads or changes scheduling data should use one of these
mixins. They build on Django's LoginRequiredMixin and check a named
permission from the user's resolved EffectivePermissions, so a developer
passes every check and an emulating developer sees what the emulated tags
allow.

Usage:
    class ApproveView(WorkerRequiredMixin, View):
        def post(self, request, pk):
            ...
"""

import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import HttpRequest

from core.http import error_response
from core.results import Reason

logger = logging.getLogger(__name__)


class PermissionRequiredMixin(LoginRequiredMixin):
    """
    Base mixin that enforces one named permission.

    Subclasses set `required_permission` to a name understood by
    EffectivePermissions.has(). An empty value only requires login.
    """

    required_permission: str = ""

    def dispatch(self, request: HttpRequest, *args, **kwargs):
        """
        Check authentication and permission before dispatching.

        Both failures answer with the same JSON 403 body the services use.
        """
        if not request.user.is_authenticated:
            return error_response(Reason.PERMISSION_DENIED, "Authentication required.")

        if self.required_permission and not request.user.permissions.has(self.required_permission):
            logger.warning(
                "User %d attempted to access %s which requires '%s'.",
                request.user.pk,
                request.path,
                self.required_permission,
            )
            return error_response(Reason.PERMISSION_DENIED, "You don't have permission to access this page.")

        return super().dispatch(request, *args, **kwargs)


class ManagerRequiredMixin(PermissionRequiredMixin):
    """Restrict access to managers (and developers)."""

    required_permission = "manager"


class WorkerRequiredMixin(PermissionRequiredMixin):
    """Restrict access to workers; managers always hold this too."""

    required_permission = "worker"


class StaffRequiredMixin(PermissionRequiredMixin):
    """Restrict access to anyone on the internal staff tag set."""

    required_permission = "staff"
