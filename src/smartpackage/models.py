"""SmartPackage booking models: drafts, scan ledger and reference counters."""

from django.conf import settings
from django.db import models
from django.utils import timezone

from .workflows import OPEN_STAGES, WORKFLOW_CHOICES, Stage, get_workflow


def local_today():
    return timezone.localdate()


class Booking(models.Model):
    """A draft or finalized asset-movement transaction."""

    module = models.CharField(
        max_length=30, choices=WORKFLOW_CHOICES, db_index=True
    )
    draft_id = models.CharField(
        max_length=100,
        unique=True,
        help_text="Client-generated token, created before the first save",
    )
    ref_id = models.CharField(
        max_length=30,
        unique=True,
        null=True,
        blank=True,
        help_text="Reference number; set once and never reassigned",
    )
    is_status = models.CharField(max_length=3, db_index=True)
    objective = models.CharField(max_length=255, blank=True)
    booking_remark = models.TextField(blank=True)
    origin = models.CharField(max_length=100, blank=True)
    destination = models.CharField(max_length=100, blank=True)
    attendees = models.PositiveIntegerField(
        default=0, help_text="Number of scan ledger entries"
    )
    version = models.PositiveIntegerField(
        default=1, help_text="Incremented on every committed change"
    )
    create_date = models.DateField(default=local_today, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_bookings",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_bookings",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["module", "create_date"],
                name="idx_booking_module_date",
            ),
        ]
        permissions = [
            ("unlock_booking", "Can unlock a finalized booking"),
        ]

    def __str__(self):
        return self.ref_id or self.draft_id

    @property
    def workflow(self):
        return get_workflow(self.module)

    @property
    def stage(self):
        return self.workflow.stage_of(self.is_status)

    @property
    def requires_refinalize(self):
        return self.stage == Stage.UNLOCKED

    @property
    def is_open(self):
        """True while the booking can still take or give back assets."""
        return self.stage in OPEN_STAGES

    def transition_to(self, event):
        """Apply ``event`` to the in-memory status.

        Raises InvalidTransition if the current status does not allow it.
        The caller saves the booking.
        """
        self.is_status = self.workflow.next_status(self.is_status, event)
        return self.is_status

    def recount_attendees(self):
        self.attendees = self.entries.count()
        return self.attendees

    def to_payload(self):
        wf = self.workflow
        created_by = self.created_by
        return {
            "draft_id": self.draft_id,
            "refID": self.ref_id,
            "module": self.module,
            **wf.status_display(self.is_status),
            "objective": self.objective,
            "booking_remark": self.booking_remark,
            "origin": self.origin,
            "destination": self.destination,
            "attendees": self.attendees,
            "version": self.version,
            "requires_refinalize": self.requires_refinalize,
            "create_date": self.create_date.isoformat(),
            "created_by": created_by.pk if created_by else None,
            "created_by_name": (
                created_by.get_display_name() if created_by else ""
            ),
            "created_at": (
                self.created_at.isoformat() if self.created_at else None
            ),
            "updated_at": (
                self.updated_at.isoformat() if self.updated_at else None
            ),
        }


class ScanEntry(models.Model):
    """One scanned asset on a booking."""

    booking = models.ForeignKey(
        Booking, on_delete=models.CASCADE, related_name="entries"
    )
    asset = models.ForeignKey(
        "registry.Asset",
        on_delete=models.PROTECT,
        related_name="scan_entries",
    )
    asset_code = models.CharField(max_length=100)
    status_name = models.CharField(max_length=100, blank=True)
    status_class = models.CharField(max_length=50, blank=True)
    prior_status = models.CharField(
        max_length=10, help_text="Asset status restored on return"
    )
    prior_origin = models.CharField(max_length=100, blank=True)
    prior_destination = models.CharField(max_length=100, blank=True)
    scan_at = models.DateTimeField(default=timezone.now)
    scan_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scan_entries",
    )

    class Meta:
        ordering = ["scan_at", "pk"]
        verbose_name_plural = "scan entries"
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "asset"],
                name="unique_scanentry_booking_asset",
            ),
        ]

    def __str__(self):
        return f"{self.booking} - {self.asset_code}"

    def to_payload(self):
        asset = self.asset
        scan_by = self.scan_by
        return {
            "id": self.pk,
            "draft_id": self.booking.draft_id,
            "asset_code": self.asset_code,
            "partCode": asset.part_code,
            "detail": asset.detail,
            "lot": asset.lot,
            "doc_no": asset.doc_no,
            "asset_status": asset.status_id,
            "status_name": self.status_name,
            "status_class": self.status_class,
            "asset_origin": asset.origin,
            "asset_destination": asset.destination,
            "scan_at": self.scan_at.isoformat(),
            "scan_by": scan_by.pk if scan_by else None,
            "scan_by_name": scan_by.get_display_name() if scan_by else "",
        }


class ReferenceSequence(models.Model):
    """Last issued reference number per prefix and local day."""

    prefix = models.CharField(max_length=10)
    day = models.DateField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["prefix", "day"],
                name="unique_referencesequence_prefix_day",
            ),
        ]

    def __str__(self):
        return f"{self.prefix} {self.day:%d%m%y} #{self.last_value}"
