"""Identity provider: turns an authenticated user into an Actor."""

from dataclasses import dataclass

from .models import CustomUser


@dataclass(frozen=True)
class Actor:
    """The caller of a service operation.

    Services only ever see this value object, never the request or the
    user row, so they can be driven from views, admin actions, Celery
    tasks and tests alike.
    """

    id: int
    role: str
    full_name: str
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role == CustomUser.ROLE_ADMIN

    @property
    def is_engineer(self) -> bool:
        return self.role == CustomUser.ROLE_ENGINEER

    @property
    def is_reporter(self) -> bool:
        return self.role == CustomUser.ROLE_REPORTER

    def __str__(self):
        return f"{self.full_name} ({self.role})"


SYSTEM_ACTOR = Actor(
    id=0,
    role=CustomUser.ROLE_ADMIN,
    full_name="System",
    email="",
)


def get_actor(user: CustomUser) -> Actor:
    """Build the Actor for an authenticated user.

    Superusers act as admins whatever their stored role.
    """
    role = CustomUser.ROLE_ADMIN if user.is_superuser else user.role
    return Actor(
        id=user.pk,
        role=role,
        full_name=user.get_display_name(),
        email=user.email,
    )
