"""
Accounts views for ShiftDesk.

View inventory:
  LoginView          → email/password login (POST)
  LogoutView         → POST-only logout
  ProfileView        → view/edit own profile and notification preferences
  MyPermissionsView  → the resolved permission record for the current user
  UserTagsView       → manager/dev: change another user's tags (POST)
  PromoteView        → manager/dev: turn a customer into staff (POST)
  EmulationView      → developer: start or stop role emulation (POST)
"""

import logging

from django.contrib.auth import authenticate, login, logout
from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views import View

from apps.accounts.models import User
from apps.accounts.services import UserTagService
from core.http import request_data, result_response
from core.permissions import PermissionRequiredMixin

logger = logging.getLogger(__name__)


def _serialize_user(user: User) -> dict:
    return {
        "id": user.pk,
        "email": user.email,
        "name": user.get_full_name(),
        "tags": user.tags.as_dict(),
        "is_dev": user.is_dev,
        "emulated_tags": user.emulated_tags or {},
        "permissions": user.permissions.as_dict(),
    }


# ---------------------------------------------------------------------------
# Auth views
# ---------------------------------------------------------------------------


class LoginView(View):
    def post(self, request: HttpRequest) -> JsonResponse:
        data = request_data(request)
        user = authenticate(
            request,
            username=(data.get("email") or "").strip(),
            password=data.get("password") or "",
        )
        if user is None:
            return JsonResponse(
                {"success": False, "message": "Invalid email or password. Please try again."},
                status=400,
            )
        login(request, user)
        return JsonResponse({"success": True, "data": _serialize_user(user)})


class LogoutView(View):
    """POST-only logout to prevent CSRF-based logout via GET links."""

    def post(self, request: HttpRequest) -> JsonResponse:
        logout(request)
        return JsonResponse({"success": True})


# ---------------------------------------------------------------------------
# Profile and permissions
# ---------------------------------------------------------------------------


class ProfileView(PermissionRequiredMixin, View):
    """
    View and update the signed-in user's profile.

    POST fields: first_name, last_name, phone_number, notify_in_app, notify_email
    """

    PROFILE_FIELDS = ("first_name", "last_name", "phone_number")
    PREFERENCE_FIELDS = ("notify_in_app", "notify_email")

    def get(self, request: HttpRequest) -> JsonResponse:
        user = request.user
        return JsonResponse({
            **_serialize_user(user),
            "phone_number": user.phone_number,
            "notify_in_app": user.notify_in_app,
            "notify_email": user.notify_email,
        })

    def post(self, request: HttpRequest) -> JsonResponse:
        user = request.user
        data = request_data(request)
        fields = []
        for name in self.PROFILE_FIELDS:
            if name in data:
                setattr(user, name, str(data[name]).strip())
                fields.append(name)
        for name in self.PREFERENCE_FIELDS:
            if name in data:
                setattr(user, name, data[name] in (True, "true", "on", "1", 1))
                fields.append(name)
        if fields:
            user.save(update_fields=fields)
        return self.get(request)


class MyPermissionsView(PermissionRequiredMixin, View):
    def get(self, request: HttpRequest) -> JsonResponse:
        perms = request.user.permissions
        return JsonResponse({
            "permissions": perms.as_dict(),
            "is_emulating": request.user.is_emulating,
        })


class UserTagsView(PermissionRequiredMixin, View):
    """
    Change a user's permission tags.

    POST body: any subset of the tag fields with boolean values. All changes
    are applied in one write so the manager-implies-worker rule holds.
    """

    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        target = get_object_or_404(User, pk=pk)
        data = request_data(request)
        changes = {
            name: value in (True, "true", "on", "1", 1)
            for name, value in data.items()
        }
        result = UserTagService.update_tags(request.user, target, **changes)
        return result_response(result, _serialize_user)


class PromoteView(PermissionRequiredMixin, View):
    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        target = get_object_or_404(User, pk=pk)
        return result_response(UserTagService.promote_to_staff(request.user, target), _serialize_user)


class EmulationView(PermissionRequiredMixin, View):
    """
    Developer role emulation.

    POST body: {"tags": {...}} to start emulating, {} or {"tags": null} to stop.
    """

    def post(self, request: HttpRequest) -> JsonResponse:
        tags = request_data(request).get("tags")
        return result_response(UserTagService.set_emulation(request.user, tags), _serialize_user)
