"""
Tool inventory and rentals for ShiftDesk.

Rental status machine:
  PENDING  -> APPROVED (manager) | CANCELLED
  APPROVED -> ACTIVE (picked up) -> RETURNED
  APPROVED/ACTIVE past rental_end_date -> OVERDUE (nightly task)

Returned rentals drop off the calendar.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Tool(models.Model):
    name = models.CharField(max_length=150)
    category = models.CharField(max_length=100, blank=True)
    daily_rate = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    is_available = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ToolRental(models.Model):
    """A customer's (or staff member's) rental of one tool over a date range."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        ACTIVE = "active", _("Active")
        RETURNED = "returned", _("Returned")
        OVERDUE = "overdue", _("Overdue")
        CANCELLED = "cancelled", _("Cancelled")

    tool = models.ForeignKey(Tool, on_delete=models.PROTECT, related_name="rentals")
    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tool_rentals",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="tool_rentals_created",
    )
    rental_start_date = models.DateField()
    rental_end_date = models.DateField()
    daily_rate = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    total_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=15, choices=Status.choices, default=Status.PENDING)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="tool_rentals_approved",
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Tool Rental"
        verbose_name_plural = "Tool Rentals"
        ordering = ["rental_start_date"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["rental_start_date", "rental_end_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.tool} -> {self.renter} ({self.rental_start_date}..{self.rental_end_date})"

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING

    @property
    def days(self) -> int:
        return (self.rental_end_date - self.rental_start_date).days + 1

    def save(self, *args, **kwargs):
        """Price the rental from the daily rate when no total was given."""
        if not self.total_cost and self.daily_rate:
            self.total_cost = self.daily_rate * self.days
        super().save(*args, **kwargs)
