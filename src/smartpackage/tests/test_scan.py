"""Tests for scan validation and ledger insertion."""

import threading
from unittest import mock

import pytest

from django.db import connection

from registry.factories import AssetFactory
from registry.models import AssetHistory
from smartpackage.exceptions import BookingNotFound, ScanRejected
from smartpackage.factories import BookingFactory, ScanEntryFactory
from smartpackage.models import ScanEntry
from smartpackage.services.scan import scan_asset
from smartpackage.workflows import get_workflow

SYSTEM_IN = get_workflow("systemin")


def label(code):
    return f"DOC001|PART-A|{code}|L01|B|"


def _scan(booking, user, code, workflow=SYSTEM_IN, ref_id=None):
    return scan_asset(workflow, booking.draft_id, user, label(code), ref_id)


def _rejected(booking, user, code, **kwargs):
    with pytest.raises(ScanRejected) as exc:
        _scan(booking, user, code, **kwargs)
    return exc.value


@pytest.mark.django_db
class TestScanAccepted:
    def test_issued_asset_is_received(self, saved_booking, issued_asset, user):
        booking, entry = _scan(saved_booking, user, "BX000101")

        assert booking.attendees == 1
        assert entry.asset_code == "BX000101"
        assert entry.prior_status == "101"
        assert entry.scan_by == user
        issued_asset.refresh_from_db()
        assert issued_asset.status_id == "102"
        assert issued_asset.current_booking == saved_booking
        # System-In keeps the asset's last movement
        assert issued_asset.destination == "WH-1"

    def test_scan_response_payload(self, saved_booking, issued_asset, user):
        _, entry = _scan(saved_booking, user, "BX000101")
        payload = entry.to_payload()
        assert payload["draft_id"] == "D-SAVED1"
        assert payload["asset_status"] == "102"
        assert payload["status_name"] == "Receiving"
        assert payload["scan_by_name"] == "Test User"

    def test_scan_bumps_version_and_keeps_status(
        self, saved_booking, issued_asset, user
    ):
        booking, _ = _scan(saved_booking, user, "BX000101")
        assert booking.version == saved_booking.version + 1
        booking.refresh_from_db()
        assert booking.is_status == SYSTEM_IN.status.SAVED

    def test_history_row_written(self, saved_booking, issued_asset, user):
        _scan(saved_booking, user, "BX000101")
        row = AssetHistory.objects.get(asset=issued_asset)
        assert row.action == "scan"
        assert row.ref_id == "RC0101260001"
        assert row.status == "102"
        assert (row.origin, row.destination) == ("WH-1", "WH-2")

    def test_bare_code_and_thai_layout(self, saved_booking, issued_asset, user):
        booking, _ = scan_asset(
            SYSTEM_IN, "D-SAVED1", user, "BXจจจๅจๅ"
        )
        assert booking.attendees == 1

    def test_matching_ref_id_accepted(self, saved_booking, issued_asset, user):
        booking, _ = _scan(
            saved_booking, user, "BX000101", ref_id="RC0101260001"
        )
        assert booking.attendees == 1

    def test_unlocked_booking_accepts_scans(self, saved_booking, issued_asset, user):
        saved_booking.is_status = SYSTEM_IN.status.UNLOCKED
        saved_booking.save()
        booking, _ = _scan(saved_booking, user, "BX000101")
        assert booking.is_status == SYSTEM_IN.status.UNLOCKED

    def test_publishes_after_commit(
        self,
        saved_booking,
        issued_asset,
        user,
        django_capture_on_commit_callbacks,
    ):
        with django_capture_on_commit_callbacks() as callbacks:
            _scan(saved_booking, user, "BX000101")
        # booking update and asset upsert
        assert len(callbacks) == 2


@pytest.mark.django_db
class TestScanRejected:
    def test_second_scan_is_already_scanned(
        self, saved_booking, issued_asset, user
    ):
        _scan(saved_booking, user, "BX000101")
        exc = _rejected(saved_booking, user, "BX000101")
        assert exc.code == "ALREADY_SCANNED"
        assert exc.status == 200
        assert exc.data["asset_code"] == "BX000101"
        assert ScanEntry.objects.count() == 1

    def test_wrong_destination_is_invalid_origin(
        self, saved_booking, asset_statuses, user
    ):
        asset = AssetFactory(
            asset_code="BX000109",
            status=asset_statuses["101"],
            destination="WH-9",
        )
        exc = _rejected(saved_booking, user, "BX000109")
        assert exc.code == "INVALID_ORIGIN"
        assert exc.data["expected_origin"] == "WH-1"
        assert exc.data["actual_destination"] == "WH-9"
        asset.refresh_from_db()
        assert asset.status_id == "101"
        assert not ScanEntry.objects.exists()

    def test_wrong_asset_status(self, saved_booking, stock_asset, user):
        exc = _rejected(saved_booking, user, "BX000100")
        assert exc.code == "INVALID_STATUS_100"
        assert exc.data["asset_status"] == "100"

    def test_asset_held_by_other_open_booking(
        self, saved_booking, issued_asset, user
    ):
        other = BookingFactory(
            draft_id="D-OTHER",
            is_status=SYSTEM_IN.status.SAVED,
            ref_id="RC0101260002",
        )
        issued_asset.current_booking = other
        issued_asset.save()
        exc = _rejected(saved_booking, user, "BX000101")
        assert exc.code == "INVALID_STATUS"
        assert exc.data["held_by"] == "D-OTHER"

    def test_asset_released_by_closed_booking_can_be_scanned(
        self, saved_booking, issued_asset, user
    ):
        closed = BookingFactory(
            draft_id="D-DONE", is_status=SYSTEM_IN.status.LOCKED
        )
        issued_asset.current_booking = closed
        issued_asset.save()
        booking, _ = _scan(saved_booking, user, "BX000101")
        assert booking.attendees == 1

    def test_invalid_qr(self, saved_booking, user):
        with pytest.raises(ScanRejected) as exc:
            scan_asset(SYSTEM_IN, "D-SAVED1", user, "DOC001|PART-A")
        assert exc.value.code == "INVALID_QR"

    def test_unknown_asset(self, saved_booking, user):
        exc = _rejected(saved_booking, user, "BX404")
        assert exc.code == "NOT_FOUND"
        assert exc.data == {"qrString": label("BX404")}

    def test_ref_required(self, new_booking, issued_asset, user):
        assert _rejected(new_booking, user, "BX000101").code == "REF_REQUIRED"

    def test_header_required(self, new_booking, issued_asset, user):
        new_booking.ref_id = "RC0101260009"
        new_booking.save()
        exc = _rejected(new_booking, user, "BX000101")
        assert exc.code == "HEADER_REQUIRED"

    def test_ref_mismatch(self, saved_booking, issued_asset, user):
        exc = _rejected(
            saved_booking, user, "BX000101", ref_id="RC0101269999"
        )
        assert exc.code == "REF_MISMATCH"
        assert exc.data == {
            "expected": "RC0101260001",
            "received": "RC0101269999",
        }

    @pytest.mark.parametrize(
        "stage, code",
        [
            ("FINALIZED", "INVALID_STATUS_FINALIZED"),
            ("LOCKED", "INVALID_STATUS_LOCKED"),
            ("CANCELED", "INVALID_STATUS_CANCELED"),
        ],
    )
    def test_closed_booking(self, saved_booking, issued_asset, user, stage, code):
        saved_booking.is_status = getattr(SYSTEM_IN.status, stage)
        saved_booking.save()
        exc = _rejected(saved_booking, user, "BX000101")
        assert exc.code == code
        assert exc.data["is_status"] == saved_booking.is_status

    def test_booking_checked_before_asset(self, saved_booking, stock_asset, user):
        saved_booking.is_status = SYSTEM_IN.status.FINALIZED
        saved_booking.save()
        exc = _rejected(saved_booking, user, "BX000100")
        assert exc.code == "INVALID_STATUS_FINALIZED"

    def test_unknown_booking(self, issued_asset, user):
        with pytest.raises(BookingNotFound):
            scan_asset(SYSTEM_IN, "D-MISSING", user, label("BX000101"))

    def test_duplicate_insert_backstop(self, saved_booking, issued_asset, user):
        ScanEntryFactory(booking=saved_booking, asset=issued_asset)
        with mock.patch("smartpackage.services.scan._check_asset"):
            exc = _rejected(saved_booking, user, "BX000101")
        assert exc.code == "ALREADY_SCANNED"
        issued_asset.refresh_from_db()
        assert issued_asset.status_id == "101"


@pytest.mark.django_db(transaction=True)
class TestConcurrentScans:
    def test_parallel_scans_make_one_entry(
        self, saved_booking, issued_asset, user
    ):
        if connection.vendor != "postgresql":
            pytest.skip("row locks need PostgreSQL")
        barrier = threading.Barrier(2)
        results = []

        def worker():
            barrier.wait()
            try:
                _scan(saved_booking, user, "BX000101")
                results.append("ok")
            except ScanRejected as exc:
                results.append(exc.code)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(results) == ["ALREADY_SCANNED", "ok"]
        assert ScanEntry.objects.count() == 1
        saved_booking.refresh_from_db()
        assert saved_booking.attendees == 1


@pytest.mark.django_db
class TestOtherWorkflows:
    def test_system_out_stamps_header_locations(self, stock_asset, user):
        wf = get_workflow("systemout")
        booking = BookingFactory(
            module="systemout",
            ref_id="OT0101260001",
            is_status=wf.status.SAVED,
            origin="WH-1",
            destination="WH-3",
        )
        _, entry = _scan(booking, user, "BX000100", workflow=wf)
        stock_asset.refresh_from_db()
        assert stock_asset.status_id == "101"
        assert (stock_asset.origin, stock_asset.destination) == (
            "WH-1",
            "WH-3",
        )
        assert entry.prior_status == "100"
        assert entry.prior_destination == "WH-3"

    def test_system_out_rejects_issued_asset(self, issued_asset, user):
        wf = get_workflow("systemout")
        booking = BookingFactory(
            module="systemout",
            ref_id="OT0101260001",
            is_status=wf.status.SAVED,
            origin="WH-1",
            destination="WH-3",
        )
        exc = _rejected(booking, user, "BX000101", workflow=wf)
        assert exc.code == "INVALID_STATUS_101"

    def test_defective_accepts_stock_without_origin_check(
        self, stock_asset, user
    ):
        wf = get_workflow("systemdefective")
        booking = BookingFactory(
            module="systemdefective",
            ref_id="DF0101260001",
            is_status=wf.status.SAVED,
            origin="WH-1",
            destination="RP-1",
        )
        _scan(booking, user, "BX000100", workflow=wf)
        stock_asset.refresh_from_db()
        assert stock_asset.status_id == "103"

    def test_defective_checks_origin_for_issued(self, asset_statuses, user):
        wf = get_workflow("systemdefective")
        AssetFactory(
            asset_code="BX000201",
            status=asset_statuses["101"],
            destination="WH-2",
        )
        booking = BookingFactory(
            module="systemdefective",
            ref_id="DF0101260001",
            is_status=wf.status.SAVED,
            origin="WH-1",
            destination="RP-1",
        )
        exc = _rejected(booking, user, "BX000201", workflow=wf)
        assert exc.code == "INVALID_ORIGIN"

    def test_repair_takes_defective_assets(self, defective_asset, user):
        wf = get_workflow("systemrepair")
        booking = BookingFactory(
            module="systemrepair",
            ref_id="RP0101260001",
            is_status=wf.status.SAVED,
        )
        _scan(booking, user, "BX000103", workflow=wf)
        defective_asset.refresh_from_db()
        assert defective_asset.status_id == "104"
        assert defective_asset.destination == "WH-2"
