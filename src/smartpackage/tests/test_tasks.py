"""Tests for SmartPackage Celery tasks."""

from datetime import timedelta

import pytest

from django.test.utils import override_settings
from django.utils import timezone

from smartpackage.factories import BookingFactory, ScanEntryFactory
from smartpackage.models import Booking
from smartpackage.tasks import cancel_stale_drafts


def _age(booking, hours):
    Booking.objects.filter(pk=booking.pk).update(
        created_at=timezone.now() - timedelta(hours=hours)
    )


@pytest.mark.django_db
class TestCancelStaleDrafts:
    def test_old_draft_is_canceled(self, asset_statuses):
        old = BookingFactory(draft_id="D-OLD")
        _age(old, 48)
        assert cancel_stale_drafts.apply().get() == 1
        old.refresh_from_db()
        assert old.is_status == "133"

    def test_fresh_draft_is_kept(self, asset_statuses):
        fresh = BookingFactory(draft_id="D-FRESH")
        assert cancel_stale_drafts.apply().get() == 0
        fresh.refresh_from_db()
        assert fresh.is_status == "130"

    def test_drafts_with_reference_or_scans_are_kept(self, asset_statuses):
        with_ref = BookingFactory(draft_id="D-REF", ref_id="RC0101260001")
        with_scan = BookingFactory(draft_id="D-SCAN")
        ScanEntryFactory(booking=with_scan)
        _age(with_ref, 48)
        _age(with_scan, 48)
        assert cancel_stale_drafts.apply().get() == 0

    def test_unlocked_booking_is_never_touched(self, asset_statuses):
        unlocked = BookingFactory(draft_id="D-UNL", is_status="134")
        _age(unlocked, 500)
        cancel_stale_drafts.apply().get()
        unlocked.refresh_from_db()
        assert unlocked.is_status == "134"

    def test_max_age_argument(self, asset_statuses):
        draft = BookingFactory(draft_id="D-2H", module="systemout")
        _age(draft, 2)
        result = cancel_stale_drafts.apply(kwargs={"max_age_hours": 1})
        assert result.get() == 1
        draft.refresh_from_db()
        assert draft.is_status == "123"

    @override_settings(SMARTPACKAGE_STALE_DRAFT_HOURS=1)
    def test_age_from_settings(self, asset_statuses):
        draft = BookingFactory(draft_id="D-SET")
        _age(draft, 2)
        assert cancel_stale_drafts.apply().get() == 1
