"""Custom user model for ITDesk."""

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """Helpdesk user with a single role and a display name."""

    ROLE_ADMIN = "admin"
    ROLE_ENGINEER = "engineer"
    ROLE_REPORTER = "reporter"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_ENGINEER, "Engineer"),
        (ROLE_REPORTER, "Reporter"),
    ]

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_REPORTER,
        help_text="Decides which ticket and asset operations are allowed",
    )
    full_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Name matched against a ticket's assigned engineer",
    )
    email = models.EmailField("email address", blank=False, unique=True)

    class Meta:
        db_table = "users"
        verbose_name = "user"
        verbose_name_plural = "users"

    def get_display_name(self):
        """Return full_name if set, otherwise first/last name or username."""
        if self.full_name:
            return self.full_name
        full = self.get_full_name()
        return full if full else self.username

    def __str__(self):
        return self.get_display_name()
