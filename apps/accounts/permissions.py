"""
Tag-based permission resolver for ShiftDesk.

A user carries a handful of boolean tags. Every scheduling gate in the project
asks the same question ("is this person a manager?") through the record
returned by resolve(), never by combining tags inline.

    staff            = staff
    worker           = staff and worker
    instructor       = staff and instructor
    tool_handler     = staff and tool_handler
    manager          = staff and worker and manager
    rental_approved  = not staff and rental_approved
    tool_rentals     = tool_handler or rental_approved

Developers (is_dev) pass every check for a known permission name. A developer
may emulate another tag set; the resolved fields then reflect the emulated
tags while is_dev still holds.
"""

from dataclasses import asdict, dataclass, fields
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from apps.accounts.models import User

TAG_FIELDS = (
    "staff_tag",
    "worker_tag",
    "instructor_tag",
    "tool_handler_tag",
    "manager_tag",
    "rental_approved_tag",
)


@dataclass(frozen=True)
class PermissionTags:
    """The raw tag set stored on a user profile."""

    staff_tag: bool = False
    worker_tag: bool = False
    instructor_tag: bool = False
    tool_handler_tag: bool = False
    manager_tag: bool = False
    rental_approved_tag: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[dict]) -> "PermissionTags":
        """Build a tag set from a dict, ignoring unknown keys."""
        data = data or {}
        return cls(**{name: bool(data.get(name, False)) for name in TAG_FIELDS})

    def as_dict(self) -> dict:
        return asdict(self)

    def violates_manager_rule(self) -> bool:
        """A manager tag without a worker tag is never a valid profile."""
        return self.manager_tag and not self.worker_tag


@dataclass(frozen=True)
class EffectivePermissions:
    """Closed record of named permissions derived from a tag set."""

    staff: bool = False
    worker: bool = False
    instructor: bool = False
    tool_handler: bool = False
    manager: bool = False
    rental_approved: bool = False
    tool_rentals: bool = False
    is_dev: bool = False

    def has(self, name: str) -> bool:
        """
        Check a permission by name.

        Unknown names return False rather than raising, so a typo in a view
        gate closes the gate instead of crashing the request.

        Args:
            name: One of PERMISSION_NAMES.

        Returns:
            True if the permission is granted (always, for developers).
        """
        if name not in PERMISSION_NAMES:
            return False
        return self.is_dev or getattr(self, name)

    @property
    def sees_internal_calendar(self) -> bool:
        """Staff-side viewers see non-approved calendar items they are involved in."""
        return self.is_dev or self.staff or self.worker or self.manager

    def as_dict(self) -> dict:
        return asdict(self)


PERMISSION_NAMES = frozenset(
    f.name for f in fields(EffectivePermissions) if f.name != "is_dev"
)

NO_PERMISSIONS = EffectivePermissions()


def resolve(tags: PermissionTags, is_dev: bool = False) -> EffectivePermissions:
    """
    Map a tag set to its effective permissions.

    Args:
        tags: The user's (or emulated) tag set.
        is_dev: Whether the user is a developer.

    Returns:
        EffectivePermissions with every named field computed.
    """
    staff = tags.staff_tag
    tool_handler = staff and tags.tool_handler_tag
    rental_approved = not staff and tags.rental_approved_tag
    return EffectivePermissions(
        staff=staff,
        worker=staff and tags.worker_tag,
        instructor=staff and tags.instructor_tag,
        tool_handler=tool_handler,
        manager=staff and tags.worker_tag and tags.manager_tag,
        rental_approved=rental_approved,
        tool_rentals=tool_handler or rental_approved,
        is_dev=is_dev,
    )


def permissions_for(user: Optional["User"]) -> EffectivePermissions:
    """
    Resolve the permissions of a (possibly anonymous) user.

    Developers who have an emulated tag set resolve from it.
    """
    if user is None or not user.is_authenticated:
        return NO_PERMISSIONS
    return resolve(user.effective_tags, is_dev=user.is_dev)
