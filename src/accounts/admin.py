"""Admin configuration for depot operators."""

from unfold.admin import ModelAdmin
from unfold.decorators import display

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.db.models import Count

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    model = CustomUser
    list_display = [
        "display_operator",
        "email",
        "display_groups",
        "booking_count",
        "scan_count",
        "is_active",
    ]
    list_filter = ["is_active", "is_staff", "groups"]
    search_fields = [
        "username",
        "email",
        "display_name",
        "employee_id",
        "first_name",
        "last_name",
    ]
    filter_horizontal = ["groups", "user_permissions"]
    fieldsets = (
        (
            "Operator",
            {
                "classes": ["tab"],
                "fields": (
                    "display_name",
                    "employee_id",
                    ("first_name", "last_name"),
                ),
            },
        ),
        (
            "Login",
            {
                "classes": ["tab"],
                "fields": ("username", "password", "email"),
            },
        ),
        (
            "Access",
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
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "display_name",
                    "employee_id",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request).prefetch_related("groups")
        return qs.annotate(
            n_bookings=Count("created_bookings", distinct=True),
            n_scans=Count("scan_entries", distinct=True),
        )

    @display(description="Operator", header=True, ordering="username")
    def display_operator(self, obj):
        return obj.get_display_name(), obj.employee_id or obj.username

    @display(description="Groups")
    def display_groups(self, obj):
        return ", ".join(g.name for g in obj.groups.all()) or "-"

    @display(description="Bookings", ordering="n_bookings")
    def booking_count(self, obj):
        return obj.n_bookings

    @display(description="Scans", ordering="n_scans")
    def scan_count(self, obj):
        return obj.n_scans
