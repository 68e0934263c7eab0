"""Asset registry models: zones, lifecycle statuses, assets and history."""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Zone(models.Model):
    """Named warehouse location offered as a booking origin/destination."""

    code = models.CharField(
        max_length=30,
        unique=True,
        help_text="Value stored as a booking origin or destination",
    )
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "code"]

    def __str__(self):
        return f"{self.code} - {self.name}"


class AssetStatus(models.Model):
    """Lifecycle status an asset can be in, keyed by its numeric code."""

    IN_STOCK = "100"
    ISSUED = "101"
    RECEIVING = "102"
    DEFECTIVE = "103"
    ON_REPAIR = "104"

    DEFAULTS = [
        (IN_STOCK, "In stock", "green"),
        (ISSUED, "Issued", "blue"),
        (RECEIVING, "Receiving", "orange"),
        (DEFECTIVE, "Defective - waiting for repair", "red"),
        (ON_REPAIR, "On repair", "purple"),
    ]

    code = models.CharField(max_length=10, unique=True)
    name = models.CharField(max_length=100)
    css_class = models.CharField(
        max_length=50,
        blank=True,
        help_text="Colour/class name the client uses to render the status",
    )

    class Meta:
        ordering = ["code"]
        verbose_name_plural = "asset statuses"

    def __str__(self):
        return f"{self.code} {self.name}"


class Asset(models.Model):
    """A physical asset (box, container or material) tracked by code."""

    asset_code = models.CharField(max_length=100, unique=True)
    part_code = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        help_text="Grouping key for the type of asset",
    )
    detail = models.CharField(max_length=255, blank=True)
    lot = models.CharField(max_length=100, blank=True)
    doc_no = models.CharField(max_length=100, blank=True)
    status = models.ForeignKey(
        AssetStatus,
        on_delete=models.PROTECT,
        to_field="code",
        related_name="assets",
    )
    origin = models.CharField(max_length=100, blank=True)
    destination = models.CharField(max_length=100, blank=True)
    current_booking = models.ForeignKey(
        "smartpackage.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="held_assets",
        help_text="Booking currently holding this asset",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_assets",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_assets",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["asset_code"]
        indexes = [
            models.Index(fields=["status"], name="idx_asset_status"),
        ]

    def __str__(self):
        return self.asset_code

    def to_payload(self):
        """Snapshot sent to clients in scan results and upsert events."""
        status = self.status
        return {
            "asset_code": self.asset_code,
            "partCode": self.part_code,
            "detail": self.detail,
            "lot": self.lot,
            "doc_no": self.doc_no,
            "asset_status": status.code,
            "status_name": status.name,
            "status_class": status.css_class,
            "asset_origin": self.origin,
            "asset_destination": self.destination,
            "draft_id": (
                self.current_booking.draft_id if self.current_booking else None
            ),
            "updated_at": (
                self.updated_at.isoformat() if self.updated_at else None
            ),
        }


class AssetHistory(models.Model):
    """Immutable audit log of every asset movement made by a booking."""

    ACTION_CHOICES = [
        ("scan", "Scan"),
        ("return", "Return"),
        ("correction_return", "Returned during correction"),
        ("finalize", "Finalize"),
        ("refinalize", "Re-finalize"),
        ("confirm_output", "Confirm output"),
        ("receive_repair", "Received from repair"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="history"
    )
    asset_code = models.CharField(max_length=100)
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    module = models.CharField(max_length=30, blank=True)
    draft_id = models.CharField(max_length=100, blank=True, db_index=True)
    ref_id = models.CharField(max_length=30, blank=True, db_index=True)
    status = models.CharField(
        max_length=10, help_text="Asset status code at the time of the row"
    )
    origin = models.CharField(max_length=100, blank=True)
    destination = models.CharField(max_length=100, blank=True)
    booking_remark = models.TextField(blank=True)
    scan_at = models.DateTimeField(null=True, blank=True)
    scan_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="asset_history",
        help_text="The user who performed the action",
    )
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-timestamp", "-pk"]
        verbose_name_plural = "asset history"
        indexes = [
            models.Index(
                fields=["timestamp"], name="idx_assethistory_timestamp"
            ),
            models.Index(fields=["action"], name="idx_assethistory_action"),
        ]

    def __str__(self):
        return f"{self.asset_code} - {self.get_action_display()}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Asset history is immutable and cannot be modified."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Asset history is immutable and cannot be deleted.")
