"""
Accounts models for ShiftDesk.

Defines the custom User model. The User model uses email as the unique
identifier (no username).

Key design decisions:
  - Capabilities are boolean tags, combined into named permissions by
    apps.accounts.permissions.resolve(); views never combine tags inline
  - staff_tag is the business "staff member" tag; Django's is_staff stays the
    admin-site flag
  - Developers can emulate a tag set (emulated_tags) to see the system as
    another kind of user
"""

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.accounts.permissions import EffectivePermissions, PermissionTags, TAG_FIELDS, permissions_for


class UserManager(BaseUserManager):
    """Custom manager for the ShiftDesk User model (email-based auth)."""

    def create_user(self, email: str, password: str, **extra_fields) -> "User":
        """
        Create and save a regular user with the given email and password.

        Args:
            email: The user's email address (used as login identifier).
            password: The raw password (will be hashed).
            **extra_fields: Additional fields to set on the User model.

        Returns:
            The newly created User instance.

        Raises:
            ValueError: If email is not provided.
        """
        if not email:
            raise ValueError(_("The Email field must be set"))
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str, **extra_fields) -> "User":
        """
        Create and save a superuser with the given email and password.

        Superusers are developers: they pass every permission check.
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_dev", True)
        return self.create_user(email, password, **extra_fields)

    def managers(self):
        """Users whose stored tags resolve to the manager permission."""
        return self.filter(is_active=True, staff_tag=True, worker_tag=True, manager_tag=True)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom user model for ShiftDesk.

    Tags determine what the user can see and do:
      - staff_tag: employee of the business (workers, instructors, handlers)
      - worker_tag: can be assigned to shifts
      - instructor_tag: runs courses and approves enrollments
      - tool_handler_tag: manages the tool rental desk
      - manager_tag: approves assignments and calendar items (requires worker_tag)
      - rental_approved_tag: a customer cleared to rent tools
    """

    # Core identity
    email = models.EmailField(_("email address"), unique=True)
    first_name = models.CharField(_("first name"), max_length=150)
    last_name = models.CharField(_("last name"), max_length=150)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)  # Django admin access

    # Capability tags
    staff_tag = models.BooleanField(default=False, help_text="Employee of the business.")
    worker_tag = models.BooleanField(default=False)
    instructor_tag = models.BooleanField(default=False)
    tool_handler_tag = models.BooleanField(default=False)
    manager_tag = models.BooleanField(default=False, help_text="Requires the worker tag.")
    rental_approved_tag = models.BooleanField(
        default=False, help_text="Customer approved for tool rentals (non-staff only)."
    )

    is_dev = models.BooleanField(default=False, help_text="Developer: bypasses permission checks.")
    emulated_tags = models.JSONField(
        default=dict,
        blank=True,
        help_text="Developer-only tag set to view the system as another user. Empty = off.",
    )

    phone_number = models.CharField(max_length=20, blank=True)

    # Notification preferences
    notify_in_app = models.BooleanField(default=True)
    notify_email = models.BooleanField(default=False)

    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["first_name", "last_name"]

    class Meta:
        verbose_name = _("user")
        verbose_name_plural = _("users")
        ordering = ["last_name", "first_name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(manager_tag=False) | models.Q(worker_tag=True),
                name="manager_tag_requires_worker_tag",
            ),
        ]

    def __str__(self) -> str:
        return self.get_full_name() or self.email

    def clean(self) -> None:
        """Reject a manager tag without the worker tag."""
        super().clean()
        if self.tags.violates_manager_rule():
            raise ValidationError({"manager_tag": _("Manager tag requires worker tag.")})

    def get_full_name(self) -> str:
        """Return the first_name plus the last_name, with a space in between."""
        return f"{self.first_name} {self.last_name}".strip()

    def get_short_name(self) -> str:
        """Return the first name for the user."""
        return self.first_name

    @property
    def tags(self) -> PermissionTags:
        """The stored tag set."""
        return PermissionTags(**{name: getattr(self, name) for name in TAG_FIELDS})

    @property
    def is_emulating(self) -> bool:
        return self.is_dev and bool(self.emulated_tags)

    @property
    def effective_tags(self) -> PermissionTags:
        """The tag set permissions resolve from (emulated for developers)."""
        if self.is_emulating:
            return PermissionTags.from_mapping(self.emulated_tags)
        return self.tags

    @property
    def permissions(self) -> EffectivePermissions:
        """Resolved permission record for this user."""
        return permissions_for(self)
