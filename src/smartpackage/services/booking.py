"""Booking lifecycle operations.

Every mutation locks the booking row with ``select_for_update`` inside
``transaction.atomic()`` before it reads the status, so all changes to
one draft are serialised. Asset rows are always locked after the
booking row.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from registry.models import Asset, AssetHistory, AssetStatus, Zone
from registry.services.state import record_history, transition_asset

from ..exceptions import (
    BookingNotFound,
    BookingValidationError,
    CapabilityRequired,
    InvalidTransition,
)
from ..models import Booking
from ..workflows import WORKFLOWS, Event, Stage
from .broadcast import broadcaster

logger = logging.getLogger(__name__)

HEADER_FIELDS = ("objective", "booking_remark", "origin", "destination")
LOCATION_FIELDS = ("origin", "destination")
UNLOCK_PERMISSION = "smartpackage.unlock_booking"
FINALIZE_ACTIONS = ("finalize", "refinalize")
RETURN_ACTIONS = ("return", "correction_return")


def _require_draft_id(draft_id):
    if not draft_id:
        raise BookingValidationError(
            "draft_id is required.", data={"missing": ["draft_id"]}
        )


def get_booking(workflow, draft_id):
    """Return the booking for ``draft_id`` in ``workflow``.

    Raises BookingNotFound if it does not exist.
    """
    _require_draft_id(draft_id)
    try:
        return Booking.objects.select_related("created_by").get(
            module=workflow.slug, draft_id=draft_id
        )
    except Booking.DoesNotExist:
        raise BookingNotFound(
            f"Booking '{draft_id}' not found.", data={"draft_id": draft_id}
        )


def lock_booking(workflow, draft_id):
    """Return the booking row locked for update.

    Must be called inside ``transaction.atomic()``.
    """
    _require_draft_id(draft_id)
    try:
        return Booking.objects.select_for_update().get(
            module=workflow.slug, draft_id=draft_id
        )
    except Booking.DoesNotExist:
        raise BookingNotFound(
            f"Booking '{draft_id}' not found.", data={"draft_id": draft_id}
        )


def save_booking(booking, user, update_fields):
    """Persist ``booking`` and bump its version."""
    booking.version += 1
    booking.updated_by = user
    booking.save(
        update_fields=[*update_fields, "version", "updated_by", "updated_at"]
    )


def _lock_assets(**filters):
    return list(
        Asset.objects.select_for_update(of=("self",))
        .select_related("status")
        .filter(**filters)
        .order_by("pk")
    )


def _clean_codes(codes):
    if isinstance(codes, str):
        codes = [codes]
    cleaned = []
    for code in codes or []:
        code = str(code).strip()
        if code and code not in cleaned:
            cleaned.append(code)
    return cleaned


def merge_header(workflow, booking, header):
    """Copy submitted header fields onto ``booking``.

    Only keys present in ``header`` are applied. Returns the names of
    the fields whose value changed.
    """
    fields = HEADER_FIELDS
    if not workflow.requires_locations:
        fields = tuple(f for f in HEADER_FIELDS if f not in LOCATION_FIELDS)
    changed = []
    for field in fields:
        if field not in (header or {}) or header[field] is None:
            continue
        value = str(header[field]).strip()
        if getattr(booking, field) != value:
            setattr(booking, field, value)
            changed.append(field)
    return changed


def restamp_held_assets(workflow, booking, user, changed):
    """Copy changed header locations onto the assets ``booking`` holds.

    Only workflows that stamp locations at scan time are affected.
    Returns the restamped assets.
    """
    if not workflow.stamps_locations:
        return []
    if not any(field in LOCATION_FIELDS for field in changed):
        return []
    assets = _lock_assets(current_booking=booking)
    for asset in assets:
        transition_asset(
            asset,
            asset.status_id,
            user=user,
            origin=booking.origin,
            destination=booking.destination,
        )
        broadcaster.publish_asset(asset)
    return assets


def validate_header(workflow, booking):
    """Raise BookingValidationError if the header is incomplete."""
    if not booking.ref_id:
        raise BookingValidationError(
            "Generate a reference number first.",
            code="REF_REQUIRED",
            data={"draft_id": booking.draft_id},
        )
    if workflow.requires_locations:
        missing = [f for f in LOCATION_FIELDS if not getattr(booking, f)]
        if missing:
            raise BookingValidationError(
                f"Required header fields are missing: {', '.join(missing)}.",
                code="HEADER_REQUIRED",
                data={"missing": missing},
            )


def init_booking(workflow, draft_id, user, objective=""):
    """Persist a new DRAFT_NEW booking.

    Calling again with the same ``draft_id`` returns the stored booking.
    Returns (booking, created) tuple.
    """
    _require_draft_id(draft_id)
    with transaction.atomic():
        booking, created = Booking.objects.get_or_create(
            draft_id=draft_id,
            defaults={
                "module": workflow.slug,
                "is_status": workflow.status.NEW,
                "objective": (objective or "").strip(),
                "created_by": user,
                "updated_by": user,
            },
        )
    if booking.module != workflow.slug:
        raise BookingValidationError(
            f"Draft '{draft_id}' belongs to {booking.module}.",
            code="DRAFT_CONFLICT",
            data={"draft_id": draft_id, "module": booking.module},
        )
    if created:
        logger.info("Booking %s created in %s", draft_id, workflow.slug)
    return booking, created


def ledger_snapshot(booking):
    entries = booking.entries.select_related(
        "booking", "asset", "asset__status", "scan_by"
    )
    return [entry.to_payload() for entry in entries]


def booking_detail(workflow, draft_id):
    """Full snapshot: booking header plus scanned assets."""
    booking = get_booking(workflow, draft_id)
    return {"booking": booking.to_payload(), "assets": ledger_snapshot(booking)}


def booking_ledger(workflow, draft_id):
    """Ledger-only snapshot."""
    return ledger_snapshot(get_booking(workflow, draft_id))


def confirm_header(workflow, draft_id, user, header):
    """Validate and save the booking header."""
    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        next_status = workflow.next_status(booking.is_status, Event.CONFIRM)
        changed = merge_header(workflow, booking, header)
        validate_header(workflow, booking)
        booking.is_status = next_status
        save_booking(booking, user, [*HEADER_FIELDS, "is_status"])
        restamp_held_assets(workflow, booking, user, changed)
        broadcaster.publish(booking, "header_update", booking.to_payload())
    logger.info(
        "Booking %s header saved (status %s)", draft_id, booking.is_status
    )
    return booking


def _write_finalize_history(booking, entries, user):
    """Record a finalize snapshot for every entry not already recorded.

    Entries recorded by an earlier finalize get a ``refinalize`` row only
    when the header location changed since. Returns rows written.
    """
    recorded = {}
    for row in AssetHistory.objects.filter(
        draft_id=booking.draft_id, action__in=FINALIZE_ACTIONS
    ).order_by("timestamp", "pk"):
        recorded[(row.asset_id, row.scan_at, row.scan_by_id)] = row

    written = 0
    for entry in entries:
        previous = recorded.get((entry.asset_id, entry.scan_at, entry.scan_by_id))
        if previous is None:
            action = "finalize"
        elif (previous.origin, previous.destination) != (
            booking.origin,
            booking.destination,
        ):
            action = "refinalize"
        else:
            continue
        record_history(
            entry.asset,
            action,
            user=user,
            booking=booking,
            scan_at=entry.scan_at,
            scan_by=entry.scan_by,
        )
        written += 1
    return written


def finalize_booking(workflow, draft_id, user, header=None):
    """Merge the submitted header, re-validate it and finalize."""
    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        next_status = workflow.next_status(booking.is_status, Event.FINALIZE)
        changed = merge_header(workflow, booking, header)
        validate_header(workflow, booking)
        entries = list(booking.entries.select_related("asset", "scan_by"))
        if not entries:
            raise BookingValidationError(
                "Scan at least one asset before finalizing.",
                code="EMPTY_LEDGER",
                data={"draft_id": draft_id},
            )
        restamp_held_assets(workflow, booking, user, changed)
        written = _write_finalize_history(booking, entries, user)
        booking.is_status = next_status
        booking.recount_attendees()
        save_booking(booking, user, [*HEADER_FIELDS, "is_status", "attendees"])
        broadcaster.publish(
            booking,
            "finalized",
            {"refID": booking.ref_id, "attendees": booking.attendees},
        )
    logger.info(
        "Booking %s finalized with %d assets (%d history rows)",
        draft_id,
        booking.attendees,
        written,
    )
    return booking


def unlock_booking(workflow, draft_id, user):
    """Reopen a finalized booking for correction."""
    if not user.has_perm(UNLOCK_PERMISSION):
        raise CapabilityRequired(
            "You do not have permission to unlock bookings.",
            data={"permission": UNLOCK_PERMISSION},
        )
    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        booking.transition_to(Event.UNLOCK)
        save_booking(booking, user, ["is_status"])
        broadcaster.publish(booking, "unlocked", booking.to_payload())
    logger.info("Booking %s unlocked by %s", draft_id, user)
    return booking


def cancel_booking(workflow, draft_id, user):
    """Cancel a booking that has no scanned assets."""
    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        next_status = workflow.next_status(booking.is_status, Event.CANCEL)
        count = booking.entries.count()
        if count:
            raise InvalidTransition(
                booking.is_status,
                str(Event.CANCEL),
                workflow.allowed_events(booking.is_status),
                message=(
                    f"Return all {count} scanned assets before canceling."
                ),
                code="LEDGER_NOT_EMPTY",
            )
        booking.is_status = next_status
        booking.attendees = 0
        save_booking(booking, user, ["is_status", "attendees"])
        broadcaster.publish(booking, "cancel")
    logger.info("Booking %s canceled", draft_id)
    return booking


def return_assets(workflow, draft_id, user, asset_codes):
    """Remove ledger entries and restore each asset's prior state.

    Returns (booking, returned_codes, skipped) where ``skipped`` lists
    codes that were not on the booking or have since moved on.
    """
    codes = _clean_codes(asset_codes)
    if not codes:
        raise BookingValidationError(
            "Select at least one asset to return.",
            data={"missing": ["asset_codes"]},
        )
    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        workflow.next_status(booking.is_status, Event.RETURN)
        entries = list(
            booking.entries.select_related("scan_by")
            .filter(asset_code__in=codes)
            .order_by("pk")
        )
        if not entries:
            raise BookingValidationError(
                "None of the selected assets are on this booking.",
                code="NOT_IN_BOOKING",
                data={"asset_codes": codes},
            )
        assets = {
            a.pk: a for a in _lock_assets(pk__in=[e.asset_id for e in entries])
        }
        action = (
            "correction_return"
            if booking.stage == Stage.UNLOCKED
            else "return"
        )
        returned, skipped = [], []
        for entry in entries:
            asset = assets[entry.asset_id]
            if asset.current_booking_id != booking.pk:
                skipped.append(
                    {"asset_code": entry.asset_code, "code": "ASSET_MOVED"}
                )
                continue
            transition_asset(
                asset,
                entry.prior_status,
                user=user,
                origin=entry.prior_origin,
                destination=entry.prior_destination,
                booking=None,
            )
            record_history(
                asset,
                action,
                user=user,
                booking=booking,
                origin=asset.origin,
                destination=asset.destination,
                scan_at=entry.scan_at,
                scan_by=entry.scan_by,
            )
            entry.delete()
            returned.append(entry.asset_code)
            broadcaster.publish_asset(asset)
        found = {e.asset_code for e in entries}
        skipped.extend(
            {"asset_code": c, "code": "NOT_IN_BOOKING"}
            for c in codes
            if c not in found
        )
        if returned:
            booking.recount_attendees()
            save_booking(booking, user, ["attendees"])
            broadcaster.publish(
                booking,
                "return",
                {"asset_codes": returned, "attendees": booking.attendees},
            )
    logger.info(
        "Booking %s returned %d assets (%d skipped)",
        draft_id,
        len(returned),
        len(skipped),
    )
    return booking, returned, skipped


def confirm_output(workflow, draft_id, user):
    """Lock a finalized booking and move its assets to the confirmed status."""
    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        next_status = workflow.next_status(
            booking.is_status, Event.CONFIRM_OUTPUT
        )
        assets = _lock_assets(current_booking=booking)
        for asset in assets:
            transition_asset(
                asset, workflow.confirmed_status, user=user, booking=None
            )
            record_history(
                asset,
                "confirm_output",
                user=user,
                booking=booking,
                origin=asset.origin,
                destination=asset.destination,
            )
            broadcaster.publish_asset(asset)
        booking.is_status = next_status
        save_booking(booking, user, ["is_status"])
        broadcaster.publish(
            booking,
            "output_confirmed",
            {"refID": booking.ref_id, "assets": len(assets)},
        )
    logger.info(
        "Booking %s output confirmed for %d assets", draft_id, len(assets)
    )
    return booking


def list_bookings(workflow, day):
    """Bookings created on ``day``, canceled ones excluded."""
    bookings = (
        Booking.objects.filter(module=workflow.slug, create_date=day)
        .exclude(is_status=workflow.status.CANCELED)
        .select_related("created_by")
        .annotate(live_attendees=Count("entries"))
        .order_by("-created_at")
    )
    return [
        {**b.to_payload(), "attendees": b.live_attendees} for b in bookings
    ]


def _history_payload(row):
    scan_by = row.scan_by
    return {
        "asset_code": row.asset_code,
        "partCode": row.asset.part_code,
        "detail": row.asset.detail,
        "lot": row.asset.lot,
        "action": row.action,
        "asset_status": row.status,
        "origin": row.origin,
        "destination": row.destination,
        "booking_remark": row.booking_remark,
        "draft_id": row.draft_id,
        "refID": row.ref_id,
        "scan_at": row.scan_at.isoformat() if row.scan_at else None,
        "scan_by_name": scan_by.get_display_name() if scan_by else "",
        "timestamp": row.timestamp.isoformat(),
    }


def history_for_ref(workflow, ref_id):
    """Latest history row per asset still on the reference document."""
    if not ref_id:
        raise BookingValidationError(
            "refID is required.", data={"missing": ["refID"]}
        )
    latest = {}
    rows = (
        AssetHistory.objects.filter(module=workflow.slug, ref_id=ref_id)
        .select_related("asset", "scan_by")
        .order_by("timestamp", "pk")
    )
    for row in rows:
        latest[row.asset_id] = row
    return [
        _history_payload(row)
        for row in latest.values()
        if row.action not in RETURN_ACTIONS
    ]


def zone_options():
    return [
        {"code": z.code, "name": z.name}
        for z in Zone.objects.filter(is_active=True)
    ]


def on_repair_assets():
    assets = Asset.objects.filter(
        status_id=AssetStatus.ON_REPAIR
    ).select_related("status", "current_booking")
    return [a.to_payload() for a in assets]


def receive_from_repair(asset_codes, user):
    """Move on-repair assets back into stock.

    Assets held by a booking that is still open are refused.
    Returns (received_codes, rejected).
    """
    codes = _clean_codes(asset_codes)
    if not codes:
        raise BookingValidationError(
            "Select at least one asset to receive.",
            data={"missing": ["asset_codes"]},
        )
    received, rejected = [], []
    with transaction.atomic():
        assets = _lock_assets(asset_code__in=codes)
        for asset in assets:
            holder = asset.current_booking
            if asset.status_id != AssetStatus.ON_REPAIR:
                rejected.append(
                    {
                        "asset_code": asset.asset_code,
                        "code": f"INVALID_STATUS_{asset.status_id}",
                    }
                )
                continue
            if holder is not None and holder.is_open:
                rejected.append(
                    {
                        "asset_code": asset.asset_code,
                        "code": "INVALID_STATUS",
                        "draft_id": holder.draft_id,
                    }
                )
                continue
            transition_asset(
                asset, AssetStatus.IN_STOCK, user=user, booking=None
            )
            record_history(asset, "receive_repair", user=user, booking=holder)
            broadcaster.publish_asset(asset)
            received.append(asset.asset_code)
        found = {a.asset_code for a in assets}
        rejected.extend(
            {"asset_code": c, "code": "NOT_FOUND"} for c in codes if c not in found
        )
    logger.info(
        "Received %d assets from repair (%d rejected)",
        len(received),
        len(rejected),
    )
    return received, rejected


def cancel_stale_drafts(max_age_hours=None):
    """Cancel DRAFT_NEW bookings that never got a reference number.

    Unlocked bookings and anything with scanned assets are left alone.
    Returns the number of bookings canceled.
    """
    if max_age_hours is None:
        max_age_hours = settings.SMARTPACKAGE_STALE_DRAFT_HOURS
    cutoff = timezone.now() - timedelta(hours=max_age_hours)
    new_codes = [wf.status.NEW for wf in WORKFLOWS.values()]
    candidates = Booking.objects.filter(
        is_status__in=new_codes,
        ref_id__isnull=True,
        created_at__lt=cutoff,
    ).values_list("pk", flat=True)

    canceled = 0
    for pk in candidates:
        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=pk)
            if (
                booking.stage != Stage.DRAFT_NEW
                or booking.ref_id
                or booking.entries.exists()
            ):
                continue
            booking.transition_to(Event.CANCEL)
            save_booking(booking, None, ["is_status"])
            broadcaster.publish(booking, "cancel", {"reason": "stale"})
            canceled += 1
    if canceled:
        logger.info("Canceled %d stale draft bookings", canceled)
    return canceled
