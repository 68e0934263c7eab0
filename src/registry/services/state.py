"""Asset status transitions and history recording."""

import logging

from django.core.exceptions import ValidationError
from django.utils import timezone

from ..models import Asset, AssetHistory, AssetStatus

logger = logging.getLogger(__name__)

_UNSET = object()


def get_status(code):
    """Return the AssetStatus row for ``code``.

    Raises ValidationError if the code has not been seeded.
    """
    try:
        return AssetStatus.objects.get(code=code)
    except AssetStatus.DoesNotExist:
        raise ValidationError(f"'{code}' is not a valid asset status.")


def transition_asset(
    asset: Asset,
    new_status: str,
    *,
    user=None,
    origin=None,
    destination=None,
    booking=_UNSET,
) -> Asset:
    """Move ``asset`` to ``new_status`` and persist the change.

    The caller is expected to hold the asset row lock. ``origin`` and
    ``destination`` are only stamped when given; ``booking`` links or
    (with None) releases the asset.
    Raises ValidationError if the status code is unknown.
    """
    status = get_status(new_status)
    update_fields = ["status", "updated_at"]
    asset.status = status
    if origin is not None:
        asset.origin = origin
        update_fields.append("origin")
    if destination is not None:
        asset.destination = destination
        update_fields.append("destination")
    if booking is not _UNSET:
        asset.current_booking = booking
        update_fields.append("current_booking")
    if user is not None:
        asset.updated_by = user
        update_fields.append("updated_by")
    asset.save(update_fields=update_fields)
    logger.info(
        "Asset %s moved to status %s", asset.asset_code, status.code
    )
    return asset


def record_history(
    asset: Asset,
    action: str,
    *,
    user=None,
    booking=None,
    status=None,
    origin=None,
    destination=None,
    scan_at=None,
    scan_by=None,
) -> AssetHistory:
    """Append an immutable history row for ``asset``.

    Values not given are taken from the booking header, or from the
    asset where the header leaves them blank.
    """
    if booking is not None:
        if origin is None:
            origin = booking.origin or None
        if destination is None:
            destination = booking.destination or None
    return AssetHistory.objects.create(
        asset=asset,
        asset_code=asset.asset_code,
        action=action,
        module=booking.module if booking is not None else "",
        draft_id=booking.draft_id if booking is not None else "",
        ref_id=(booking.ref_id or "") if booking is not None else "",
        booking_remark=booking.booking_remark if booking is not None else "",
        status=status or asset.status_id,
        origin=asset.origin if origin is None else origin,
        destination=asset.destination if destination is None else destination,
        scan_at=scan_at,
        scan_by=scan_by,
        user=user,
        timestamp=timezone.now(),
    )
