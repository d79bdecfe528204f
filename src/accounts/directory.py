"""Engineer directory used when assigning tickets."""

from accounts.permissions import require

from .models import CustomUser


def list_engineers(actor) -> list[dict]:
    """Active engineers ordered by name."""
    require(actor, "engineer.list")
    engineers = CustomUser.objects.filter(
        role=CustomUser.ROLE_ENGINEER, is_active=True
    ).order_by("full_name", "pk")
    return [
        {
            "id": user.pk,
            "name": user.get_display_name(),
            "email": user.email,
            "created_at": user.date_joined,
        }
        for user in engineers
    ]
