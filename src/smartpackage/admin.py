"""Admin configuration for SmartPackage bookings."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import ChoicesDropdownFilter
from unfold.decorators import display

from django.contrib import admin

from .models import Booking, ReferenceSequence, ScanEntry


class ScanEntryInline(TabularInline):
    model = ScanEntry
    extra = 0
    fields = ["asset_code", "status_name", "prior_status", "scan_at", "scan_by"]
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Booking)
class BookingAdmin(ModelAdmin):
    list_display = [
        "draft_id",
        "ref_id",
        "module",
        "display_status",
        "origin",
        "destination",
        "attendees",
        "created_by",
        "created_at",
    ]
    list_filter = [("module", ChoicesDropdownFilter), "create_date"]
    search_fields = ["draft_id", "ref_id", "objective", "booking_remark"]
    date_hierarchy = "created_at"
    inlines = [ScanEntryInline]
    readonly_fields = [
        "module",
        "draft_id",
        "ref_id",
        "is_status",
        "attendees",
        "version",
        "create_date",
        "created_by",
        "updated_by",
        "created_at",
        "updated_at",
    ]
    list_select_related = ["created_by"]

    @display(
        description="Status",
        label={
            "Draft": "default",
            "Header saved": "info",
            "Finalized": "success",
            "Canceled": "danger",
            "Unlocked for edit": "warning",
            "Output confirmed": "primary",
        },
    )
    def display_status(self, obj):
        return obj.stage.label

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ScanEntry)
class ScanEntryAdmin(ModelAdmin):
    list_display = [
        "asset_code",
        "booking",
        "status_name",
        "prior_status",
        "scan_at",
        "scan_by",
    ]
    search_fields = ["asset_code", "booking__draft_id", "booking__ref_id"]
    date_hierarchy = "scan_at"
    list_select_related = ["booking", "scan_by"]
    readonly_fields = [
        "booking",
        "asset",
        "asset_code",
        "status_name",
        "status_class",
        "prior_status",
        "prior_origin",
        "prior_destination",
        "scan_at",
        "scan_by",
    ]

    def has_add_permission(self, request):
        return False


@admin.register(ReferenceSequence)
class ReferenceSequenceAdmin(ModelAdmin):
    list_display = ["prefix", "day", "last_value"]
    list_filter = ["prefix"]
    readonly_fields = ["prefix", "day", "last_value"]

    def has_add_permission(self, request):
        return False
