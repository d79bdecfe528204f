"""Admin configuration for tickets app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import ChoicesDropdownFilter
from unfold.decorators import action, display

from django.contrib import admin, messages

from accounts.identity import get_actor
from itdesk.exceptions import ServiceError

from .models import NotificationLog, Ticket, TicketComment
from .services.workflow import (
    DETAIL_FIELDS,
    close_ticket,
    create_ticket,
    update_ticket,
)

STATUS_LABELS = {
    Ticket.STATUS_OPEN: "info",
    Ticket.STATUS_IN_PROGRESS: "warning",
    Ticket.STATUS_RESOLVED: "success",
    Ticket.STATUS_CLOSED: "default",
}

PRIORITY_LABELS = {
    Ticket.PRIORITY_LOW: "default",
    Ticket.PRIORITY_MEDIUM: "info",
    Ticket.PRIORITY_HIGH: "warning",
    Ticket.PRIORITY_URGENT: "danger",
}


class TicketCommentInline(TabularInline):
    model = TicketComment
    extra = 0
    fields = ["author_name", "content", "is_internal", "created_at"]
    readonly_fields = ["created_at"]


@admin.register(Ticket)
class TicketAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "display_status",
        "display_priority",
        "display_engineer",
        "reporter_email",
        "created_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("priority", ChoicesDropdownFilter),
    ]
    list_filter_submit = True
    search_fields = ["subject", "description", "reporter_name"]
    date_hierarchy = "created_at"
    readonly_fields = ["created_at", "updated_at", "resolved_at"]
    inlines = [TicketCommentInline]
    actions = ["close_selected"]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "subject",
                    "description",
                    "status",
                    "priority",
                    "assigned_engineer",
                )
            },
        ),
        (
            "Reporter",
            {
                "fields": (
                    "reporter_name",
                    "reporter_email",
                    "company_name",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Resolution",
            {
                "fields": (
                    "resolution",
                    "custom_date",
                    "created_at",
                    "updated_at",
                    "resolved_at",
                ),
                "classes": ["tab"],
            },
        ),
    )

    @display(description="Ticket", header=True, ordering="subject")
    def display_header(self, obj):
        return obj.subject, f"#{obj.pk} {obj.reporter_name}"

    @display(description="Status", label=STATUS_LABELS)
    def display_status(self, obj):
        return obj.status

    @display(description="Priority", label=PRIORITY_LABELS)
    def display_priority(self, obj):
        return obj.priority

    @display(description="Engineer", empty_value="-")
    def display_engineer(self, obj):
        return obj.assigned_engineer

    def save_model(self, request, obj, form, change):
        actor = get_actor(request.user)
        data = form.cleaned_data
        if change:
            changes = {
                name: data[name]
                for name in form.changed_data
                if name in DETAIL_FIELDS or name == "status"
            }
            if changes:
                update_ticket(actor, obj.pk, **changes)
        else:
            ticket = create_ticket(
                actor,
                subject=data["subject"],
                description=data["description"],
                reporter_name=data["reporter_name"],
                reporter_email=data.get("reporter_email") or "",
                status=data.get("status"),
                priority=data.get("priority"),
                assigned_engineer=data.get("assigned_engineer"),
                company_name=data.get("company_name"),
                custom_date=data.get("custom_date"),
            )
            if data.get("resolution"):
                update_ticket(
                    actor, ticket.pk, resolution=data["resolution"]
                )
            obj.pk = ticket.pk
        obj.refresh_from_db()

    @action(description="Close selected tickets")
    def close_selected(self, request, queryset):
        actor = get_actor(request.user)
        closed = 0
        for ticket in queryset:
            try:
                close_ticket(actor, ticket.pk)
            except ServiceError as exc:
                messages.error(request, f"#{ticket.pk}: {exc}")
            else:
                closed += 1
        if closed:
            messages.success(request, f"Closed {closed} ticket(s).")


@admin.register(NotificationLog)
class NotificationLogAdmin(ModelAdmin):
    list_display = [
        "ticket",
        "recipient_email",
        "action",
        "display_status",
        "created_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        "action",
    ]
    search_fields = ["recipient_email", "ticket__subject"]
    date_hierarchy = "created_at"
    readonly_fields = [
        "ticket",
        "recipient_email",
        "action",
        "status",
        "details",
        "created_at",
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    @display(
        description="Status",
        label={
            NotificationLog.STATUS_SUCCESS: "success",
            NotificationLog.STATUS_FAILED: "danger",
        },
    )
    def display_status(self, obj):
        return obj.status
