"""Scan validation and ledger insertion.

Guards run in a fixed order and the first failure is reported with its
own code. The booking row is locked before the asset row, so two scans
on one draft, or two drafts claiming one asset, are serialised.
"""

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from registry.models import Asset
from registry.services.resolve import resolve_asset_from_payload
from registry.services.state import get_status, record_history, transition_asset

from ..exceptions import ScanRejected
from ..models import ScanEntry
from ..workflows import Event, Stage
from .booking import lock_booking, save_booking
from .broadcast import broadcaster

logger = logging.getLogger(__name__)

CLOSED_STAGES = (Stage.FINALIZED, Stage.LOCKED, Stage.CANCELED)


def _check_booking(workflow, booking, ref_id):
    stage = booking.stage
    if stage in CLOSED_STAGES:
        raise ScanRejected(
            f"This booking is {stage.label.lower()} and cannot be scanned.",
            code=f"INVALID_STATUS_{stage.name}",
            data=workflow.status_display(booking.is_status),
        )
    if not booking.ref_id:
        raise ScanRejected(
            "Generate a reference number before scanning.",
            code="REF_REQUIRED",
        )
    if ref_id and ref_id != booking.ref_id:
        raise ScanRejected(
            "The reference number does not match this booking.",
            code="REF_MISMATCH",
            data={"expected": booking.ref_id, "received": ref_id},
        )
    if stage == Stage.DRAFT_NEW:
        raise ScanRejected(
            "Save the booking header before scanning.",
            code="HEADER_REQUIRED",
        )


def _check_asset(workflow, booking, asset):
    entry = (
        booking.entries.select_related("booking", "asset", "scan_by")
        .filter(asset=asset)
        .first()
    )
    if entry is not None:
        raise ScanRejected(
            f"{asset.asset_code} is already on this booking.",
            code="ALREADY_SCANNED",
            data=entry.to_payload(),
        )
    holder = asset.current_booking
    if holder is not None and holder.pk != booking.pk and holder.is_open:
        raise ScanRejected(
            f"{asset.asset_code} is held by booking "
            f"{holder.ref_id or holder.draft_id}.",
            code="INVALID_STATUS",
            data={
                **asset.to_payload(),
                "held_by": holder.draft_id,
                "held_by_ref": holder.ref_id,
            },
        )
    if asset.status_id not in workflow.pre_states:
        raise ScanRejected(
            f"{asset.asset_code} is '{asset.status.name}'.",
            code=f"INVALID_STATUS_{asset.status_id}",
            data=asset.to_payload(),
        )
    if (
        workflow.requires_origin_check(asset.status_id)
        and asset.destination != booking.origin
    ):
        raise ScanRejected(
            f"{asset.asset_code} was sent to '{asset.destination}', "
            f"not '{booking.origin}'.",
            code="INVALID_ORIGIN",
            data={
                **asset.to_payload(),
                "expected_origin": booking.origin,
                "actual_destination": asset.destination,
            },
        )


def scan_asset(workflow, draft_id, user, qr_string, ref_id=None):
    """Validate a scanner payload against a booking and record it.

    Returns (booking, entry). Raises ScanRejected on any failed guard.
    """
    found, error = resolve_asset_from_payload(qr_string)
    if error:
        raise ScanRejected(
            "QR code not recognised."
            if error == "INVALID_QR"
            else "Asset not found.",
            code=error,
            data={"qrString": qr_string},
        )

    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        _check_booking(workflow, booking, ref_id)
        asset = (
            Asset.objects.select_for_update(of=("self",))
            .select_related("status", "current_booking")
            .get(pk=found.pk)
        )
        _check_asset(workflow, booking, asset)
        next_status = workflow.next_status(booking.is_status, Event.SCAN)

        held = get_status(workflow.held_status)
        try:
            with transaction.atomic():
                entry = ScanEntry.objects.create(
                    booking=booking,
                    asset=asset,
                    asset_code=asset.asset_code,
                    status_name=held.name,
                    status_class=held.css_class,
                    prior_status=asset.status_id,
                    prior_origin=asset.origin,
                    prior_destination=asset.destination,
                    scan_at=timezone.now(),
                    scan_by=user,
                )
        except IntegrityError:
            raise ScanRejected(
                f"{asset.asset_code} is already on this booking.",
                code="ALREADY_SCANNED",
                data=asset.to_payload(),
            )

        stamp = workflow.stamps_locations
        transition_asset(
            asset,
            workflow.held_status,
            user=user,
            origin=booking.origin if stamp else None,
            destination=booking.destination if stamp else None,
            booking=booking,
        )
        record_history(
            asset,
            "scan",
            user=user,
            booking=booking,
            scan_at=entry.scan_at,
            scan_by=user,
        )
        booking.is_status = next_status
        booking.recount_attendees()
        save_booking(booking, user, ["is_status", "attendees"])
        payload = entry.to_payload()
        broadcaster.publish(booking, "scan", payload)
        broadcaster.publish_asset(asset)

    logger.info(
        "Scanned %s into %s (%d on booking)",
        asset.asset_code,
        draft_id,
        booking.attendees,
    )
    return booking, entry
