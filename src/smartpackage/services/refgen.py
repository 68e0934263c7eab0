"""Reference number generation.

References look like ``RC1910260007``: the workflow prefix, the local
date as DDMMYY and a four digit sequence that restarts every day per
prefix.
"""

import logging

from django.db import transaction
from django.utils import timezone

from ..exceptions import InvalidTransition
from ..models import ReferenceSequence
from ..workflows import Event, Stage
from .booking import lock_booking, save_booking
from .broadcast import broadcaster

logger = logging.getLogger(__name__)


def format_reference(prefix, day, value):
    return f"{prefix}{day:%d%m%y}{value:04d}"


def next_reference(prefix, day=None):
    """Issue the next reference number for ``prefix`` on ``day``.

    The counter row is locked for the increment, so concurrent callers
    never receive the same number.
    """
    day = day or timezone.localdate()
    with transaction.atomic():
        ReferenceSequence.objects.get_or_create(prefix=prefix, day=day)
        seq = ReferenceSequence.objects.select_for_update().get(
            prefix=prefix, day=day
        )
        seq.last_value += 1
        seq.save(update_fields=["last_value"])
    return format_reference(prefix, day, seq.last_value)


def generate_reference(workflow, draft_id, user):
    """Assign a reference number to a DRAFT_NEW booking.

    A booking that already has one gets the same value back.
    Returns (booking, created) tuple.
    """
    with transaction.atomic():
        booking = lock_booking(workflow, draft_id)
        if booking.stage == Stage.CANCELED:
            raise InvalidTransition(
                booking.is_status,
                str(Event.GENERATE_REF),
                message="Cannot generate a reference for a canceled booking.",
            )
        if booking.ref_id:
            return booking, False
        booking.transition_to(Event.GENERATE_REF)
        booking.ref_id = next_reference(workflow.ref_prefix)
        save_booking(booking, user, ["ref_id", "is_status"])
        broadcaster.publish(booking, "ref_generated", {"refID": booking.ref_id})
    logger.info("Booking %s assigned reference %s", draft_id, booking.ref_id)
    return booking, True
