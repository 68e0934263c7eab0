"""Custom user model for depot operators."""

from django.db import models
from django.contrib.auth.models import AbstractUser


class CustomUser(AbstractUser):
    """Warehouse operator with a display name and an employee badge id."""

    display_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Name shown in booking attendee lists and scan records",
    )
    employee_id = models.CharField(
        max_length=50,
        blank=True,
        default="",
        db_index=True,
        help_text="Badge number printed on the operator's ID card",
    )

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"

    def get_display_name(self):
        """Return display_name if set, otherwise full name or username."""
        if self.display_name:
            return self.display_name
        full = self.get_full_name()
        return full if full else self.username

    def __str__(self):
        return self.get_display_name()
