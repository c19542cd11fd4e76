"""
Tag management for ShiftDesk user profiles.

Tag writes that must jointly satisfy "manager implies worker" are applied as a
single save on a locked row, so no reader ever sees a manager without the
worker tag.
"""

import logging

from django.db import transaction

from apps.accounts.models import User
from apps.accounts.permissions import PermissionTags, TAG_FIELDS
from apps.audit.models import AuditLog
from core.results import OperationResult, Reason

logger = logging.getLogger(__name__)

MANAGER_RULE_MESSAGE = "Manager tag requires worker tag."


def _can_modify(actor: User, target: User) -> bool:
    """Managers and developers edit other users; only developers edit themselves."""
    if actor.pk == target.pk:
        return actor.is_dev
    return actor.permissions.has("manager")


class UserTagService:
    """Service object for permission-tag writes."""

    @staticmethod
    @transaction.atomic
    def update_tags(actor: User, target: User, **changes) -> OperationResult:
        """
        Apply a set of tag changes to a user in one write.

        Args:
            actor: The manager or developer performing the change.
            target: The user whose tags change.
            **changes: Any subset of the TAG_FIELDS with boolean values.

        Returns:
            OperationResult with the updated user on success.
        """
        unknown = set(changes) - set(TAG_FIELDS)
        if unknown:
            return OperationResult.failure(
                Reason.INVARIANT_VIOLATION, f"Unknown tag(s): {', '.join(sorted(unknown))}"
            )

        if not _can_modify(actor, target):
            logger.warning("User %d attempted to modify tags of user %d.", actor.pk, target.pk)
            return OperationResult.denied("Only managers can modify user roles.")

        locked = User.objects.select_for_update().get(pk=target.pk)
        before = locked.tags.as_dict()
        merged = PermissionTags(**{**before, **{k: bool(v) for k, v in changes.items()}})

        if merged.violates_manager_rule():
            return OperationResult.failure(Reason.INVARIANT_VIOLATION, MANAGER_RULE_MESSAGE)

        for name, value in merged.as_dict().items():
            setattr(locked, name, value)
        locked.save(update_fields=list(TAG_FIELDS))

        AuditLog.objects.create(
            actor=actor,
            action="user.tags_updated",
            content_object=locked,
            before=before,
            after=merged.as_dict(),
        )
        logger.info("User %d updated tags of user %d: %s", actor.pk, locked.pk, changes)
        return OperationResult.success(locked)

    @staticmethod
    def promote_to_staff(actor: User, target: User) -> OperationResult:
        """
        Turn a customer into a staff member.

        The customer-only rental approval tag is cleared in the same write,
        since staff rent tools through the tool handler permission instead.
        """
        return UserTagService.update_tags(
            actor, target, staff_tag=True, rental_approved_tag=False
        )

    @staticmethod
    def set_emulation(actor: User, tags: dict = None) -> OperationResult:
        """
        Start or stop emulating a tag set (developers only, on themselves).

        Args:
            actor: The developer.
            tags: Mapping of tag names to booleans, or None to stop emulating.
        """
        if not actor.is_dev:
            logger.warning("Non-developer %d attempted role emulation.", actor.pk)
            return OperationResult.denied("Only developers can emulate roles.")

        if tags:
            emulated = PermissionTags.from_mapping(tags)
            if emulated.violates_manager_rule():
                return OperationResult.failure(Reason.INVARIANT_VIOLATION, MANAGER_RULE_MESSAGE)
            actor.emulated_tags = emulated.as_dict()
        else:
            actor.emulated_tags = {}
        actor.save(update_fields=["emulated_tags"])
        return OperationResult.success(actor)
