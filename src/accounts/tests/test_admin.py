"""Tests for accounts Django admin interface."""

import pytest

from django.urls import reverse


@pytest.mark.django_db
class TestCustomUserAdmin:
    def test_admin_uses_unfold_model_admin(self):
        from unfold.admin import ModelAdmin as UnfoldModelAdmin

        from accounts.admin import CustomUserAdmin

        assert issubclass(CustomUserAdmin, UnfoldModelAdmin)

    def test_changelist_lists_roles(self, admin_client, engineer_user):
        response = admin_client.get(
            reverse("admin:accounts_customuser_changelist")
        )
        assert response.status_code == 200
        assert b"Eve Engineer" in response.content

    def test_add_form_collects_role(self, admin_client):
        response = admin_client.get(reverse("admin:accounts_customuser_add"))
        assert response.status_code == 200
        assert b'name="role"' in response.content

    def test_create_user_through_admin(self, admin_client):
        from accounts.models import CustomUser

        response = admin_client.post(
            reverse("admin:accounts_customuser_add"),
            {
                "username": "newengineer",
                "email": "new.engineer@example.com",
                "full_name": "New Engineer",
                "role": "engineer",
                "password1": "Sup3r-secret-pass!",
                "password2": "Sup3r-secret-pass!",
                "usable_password": "true",
            },
        )
        assert response.status_code == 302
        user = CustomUser.objects.get(username="newengineer")
        assert user.role == "engineer"
        assert user.full_name == "New Engineer"

    def test_make_engineer_action(self, admin_client, reporter_user):
        from django.contrib.admin.models import LogEntry

        response = admin_client.post(
            reverse("admin:accounts_customuser_changelist"),
            {
                "action": "make_engineer",
                "_selected_action": [reporter_user.pk],
            },
        )
        assert response.status_code == 302
        reporter_user.refresh_from_db()
        assert reporter_user.role == "engineer"
        entry = LogEntry.objects.get(object_id=str(reporter_user.pk))
        assert entry.change_message == "Role changed from reporter to engineer"

    def test_role_action_skips_superusers(self, admin_client, admin_user):
        admin_client.post(
            reverse("admin:accounts_customuser_changelist"),
            {
                "action": "make_reporter",
                "_selected_action": [admin_user.pk],
            },
        )
        admin_user.refresh_from_db()
        assert admin_user.role == "admin"
