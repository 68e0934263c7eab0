"""Admin configuration for the asset registry."""

from unfold.admin import ModelAdmin
from unfold.contrib.filters.admin import (
    ChoicesDropdownFilter,
    RelatedDropdownFilter,
)
from unfold.decorators import display

from django.contrib import admin

from .models import Asset, AssetHistory, AssetStatus, Zone


@admin.register(Zone)
class ZoneAdmin(ModelAdmin):
    list_display = ["code", "name", "is_active", "sort_order"]
    list_editable = ["sort_order"]
    search_fields = ["code", "name"]


@admin.register(AssetStatus)
class AssetStatusAdmin(ModelAdmin):
    list_display = ["code", "name", "css_class"]
    search_fields = ["code", "name"]


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    list_display = [
        "asset_code",
        "part_code",
        "display_status",
        "origin",
        "destination",
        "current_booking",
        "updated_at",
    ]
    list_filter = [("status", RelatedDropdownFilter)]
    search_fields = ["asset_code", "part_code", "detail", "lot", "doc_no"]
    readonly_fields = [
        "current_booking",
        "created_by",
        "updated_by",
        "created_at",
        "updated_at",
    ]
    list_select_related = ["status", "current_booking"]

    @display(description="Status", ordering="status__code")
    def display_status(self, obj):
        return obj.status.name


@admin.register(AssetHistory)
class AssetHistoryAdmin(ModelAdmin):
    list_display = [
        "asset_code",
        "display_action",
        "ref_id",
        "status",
        "origin",
        "destination",
        "user",
        "timestamp",
    ]
    list_filter = [("action", ChoicesDropdownFilter), "module"]
    search_fields = ["asset_code", "ref_id", "draft_id"]
    date_hierarchy = "timestamp"
    readonly_fields = [
        "asset",
        "asset_code",
        "action",
        "module",
        "draft_id",
        "ref_id",
        "status",
        "origin",
        "destination",
        "booking_remark",
        "scan_at",
        "scan_by",
        "user",
        "timestamp",
    ]

    @display(
        description="Action",
        label={
            "scan": "info",
            "return": "warning",
            "correction_return": "warning",
            "finalize": "success",
            "refinalize": "success",
            "confirm_output": "primary",
            "receive_repair": "default",
        },
    )
    def display_action(self, obj):
        return obj.action

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
