"""Admin configuration for accounts app."""

import logging

from unfold.admin import ModelAdmin
from unfold.decorators import action, display

from django.contrib import admin, messages
from django.contrib.admin.models import CHANGE, LogEntry
from django.contrib.auth.admin import UserAdmin
from django.contrib.contenttypes.models import ContentType

from .forms import CustomUserChangeForm, CustomUserCreationForm
from .models import CustomUser

logger = logging.getLogger(__name__)

ROLE_LABELS = {
    CustomUser.ROLE_ADMIN: "danger",
    CustomUser.ROLE_ENGINEER: "info",
    CustomUser.ROLE_REPORTER: "default",
}


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser
    list_display = [
        "display_user",
        "email",
        "display_role",
        "display_staff",
        "display_active",
    ]
    list_filter = ["role", "is_active", "is_staff", "is_superuser"]
    search_fields = [
        "username",
        "email",
        "full_name",
        "first_name",
        "last_name",
    ]
    filter_horizontal = ["groups", "user_permissions"]
    fieldsets = (
        (
            "Profile",
            {
                "classes": ["tab"],
                "fields": (
                    "username",
                    "password",
                    "full_name",
                    "first_name",
                    "last_name",
                    "email",
                    "role",
                ),
            },
        ),
        (
            "Permissions",
            {
                "classes": ["tab"],
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        (
            "Activity",
            {
                "classes": ["tab"],
                "fields": ("last_login", "date_joined"),
            },
        ),
    )
    readonly_fields = ["last_login", "date_joined"]
    actions = ["make_engineer", "make_reporter"]
    add_fieldsets = UserAdmin.add_fieldsets + (
        (
            "Additional Info",
            {"fields": ("email", "full_name", "role")},
        ),
    )

    @display(description="User", header=True, ordering="username")
    def display_user(self, obj):
        return obj.get_display_name(), obj.username

    @display(description="Role", label=ROLE_LABELS, ordering="role")
    def display_role(self, obj):
        return obj.role

    @display(description="Staff", boolean=True)
    def display_staff(self, obj):
        return obj.is_staff

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.is_active

    def _log_change(self, request, user, message):
        """Create a LogEntry for a bulk action change."""
        LogEntry.objects.create(
            user_id=request.user.pk,
            content_type_id=ContentType.objects.get_for_model(user).pk,
            object_id=str(user.pk),
            object_repr=str(user),
            action_flag=CHANGE,
            change_message=message,
        )

    def _set_role(self, request, queryset, role):
        # Superusers act as admins regardless of their stored role
        changed = 0
        for user in queryset.exclude(role=role).exclude(is_superuser=True):
            previous = user.role
            user.role = role
            user.save(update_fields=["role"])
            self._log_change(
                request, user, f"Role changed from {previous} to {role}"
            )
            changed += 1
        logger.info(
            "%s set role %s on %d user(s)", request.user, role, changed
        )
        messages.success(request, f"{changed} user(s) are now {role}s.")

    @action(description="Make selected users engineers")
    def make_engineer(self, request, queryset):
        self._set_role(request, queryset, CustomUser.ROLE_ENGINEER)

    @action(description="Make selected users reporters")
    def make_reporter(self, request, queryset):
        self._set_role(request, queryset, CustomUser.ROLE_REPORTER)
