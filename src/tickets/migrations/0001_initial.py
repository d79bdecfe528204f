import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Ticket",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("subject", models.CharField(max_length=255)),
                ("description", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Open", "Open"),
                            ("In Progress", "In Progress"),
                            ("Resolved", "Resolved"),
                            ("Closed", "Closed"),
                        ],
                        default="Open",
                        max_length=20,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[
                            ("Low", "Low"),
                            ("Medium", "Medium"),
                            ("High", "High"),
                            ("Urgent", "Urgent"),
                        ],
                        default="Medium",
                        max_length=20,
                    ),
                ),
                (
                    "assigned_engineer",
                    models.CharField(
                        blank=True,
                        help_text="Full name of the engineer working the ticket",
                        max_length=255,
                        null=True,
                    ),
                ),
                ("reporter_name", models.CharField(max_length=255)),
                (
                    "reporter_email",
                    models.EmailField(
                        blank=True,
                        help_text="Receives status notifications and owns the ticket",
                        max_length=254,
                        null=True,
                    ),
                ),
                (
                    "company_name",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "resolution",
                    models.TextField(
                        blank=True,
                        help_text="Resolution description when resolved or closed",
                        null=True,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("custom_date", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "tickets",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status"], name="idx_tickets_status"
                    ),
                    models.Index(
                        fields=["assigned_engineer"],
                        name="idx_tickets_assigned_engineer",
                    ),
                    models.Index(
                        fields=["reporter_email"],
                        name="idx_tickets_reporter_email",
                    ),
                    models.Index(
                        fields=["created_at"], name="idx_tickets_created_at"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TicketComment",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("author_name", models.CharField(max_length=255)),
                (
                    "author_email",
                    models.EmailField(blank=True, max_length=254, null=True),
                ),
                ("content", models.TextField()),
                ("is_internal", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "ticket",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="tickets.ticket",
                    ),
                ),
            ],
            options={
                "db_table": "ticket_comments",
                "ordering": ["created_at", "pk"],
                "indexes": [
                    models.Index(
                        fields=["created_at"],
                        name="idx_ticket_comments_created",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("recipient_email", models.EmailField(max_length=254)),
                ("action", models.CharField(max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[("success", "Success"), ("failed", "Failed")],
                        max_length=10,
                    ),
                ),
                ("details", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "ticket",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notification_logs",
                        to="tickets.ticket",
                    ),
                ),
            ],
            options={
                "db_table": "email_logs",
                "ordering": ["-created_at", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["status"], name="idx_email_logs_status"
                    ),
                    models.Index(
                        fields=["created_at"],
                        name="idx_email_logs_created_at",
                    ),
                    models.Index(
                        fields=["recipient_email"],
                        name="idx_email_logs_recipient",
                    ),
                ],
            },
        ),
    ]
