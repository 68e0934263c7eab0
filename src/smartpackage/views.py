"""JSON endpoints for the SmartPackage booking workflow."""

import json
import logging
from functools import wraps

from django_ratelimit.decorators import ratelimit

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date

from .exceptions import BookingError, BookingValidationError
from .services import booking as booking_service
from .services.refgen import generate_reference
from .services.scan import scan_asset
from .workflows import WORKFLOWS

logger = logging.getLogger(__name__)


def _error(code, message, status, data=None):
    return JsonResponse(
        {"success": False, "code": code, "message": message, "data": data},
        status=status,
    )


def scan_rate(group, request):
    return settings.SMARTPACKAGE_SCAN_RATE


def booking_endpoint(methods=("POST",), modules=None):
    """Resolve the workflow, parse the body and render rejections as JSON.

    The wrapped view is called as ``view(request, workflow, data)`` where
    ``data`` is the decoded JSON body for POST and the query dict for GET.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(request, module, *args, **kwargs):
            workflow = WORKFLOWS.get(module)
            if workflow is None or (modules and module not in modules):
                return _error(
                    "NOT_FOUND", f"Unknown module '{module}'.", status=404
                )
            if request.method not in methods:
                return _error(
                    "METHOD_NOT_ALLOWED",
                    f"{request.method} not allowed.",
                    status=405,
                )
            if request.method == "POST":
                try:
                    data = json.loads(request.body or b"{}")
                except (json.JSONDecodeError, ValueError):
                    return _error("INVALID_JSON", "Invalid JSON", status=400)
                if not isinstance(data, dict):
                    return _error(
                        "INVALID_JSON", "Expected a JSON object", status=400
                    )
            else:
                data = request.GET
            try:
                return view(request, workflow, data, *args, **kwargs)
            except BookingError as exc:
                logger.info(
                    "%s %s rejected for %s: %s",
                    module,
                    view.__name__,
                    data.get("draft_id") or "-",
                    exc.code,
                )
                return JsonResponse(exc.as_dict(), status=exc.status)

        return wrapper

    return decorator


@login_required
@booking_endpoint(methods=("GET",))
def booking_list(request, workflow, data):
    """Bookings of one day (default today), canceled ones excluded."""
    raw = data.get("date")
    day = parse_date(raw) if raw else timezone.localdate()
    if day is None:
        raise BookingValidationError(
            "date must be YYYY-MM-DD.", data={"date": raw}
        )
    return JsonResponse(
        {
            "success": True,
            "date": day.isoformat(),
            "data": booking_service.list_bookings(workflow, day),
        }
    )


@login_required
@booking_endpoint(methods=("GET",))
def dropdowns(request, workflow, data):
    return JsonResponse(
        {"success": True, "zones": booking_service.zone_options()}
    )


@login_required
@booking_endpoint()
def init_booking(request, workflow, data):
    booking, created = booking_service.init_booking(
        workflow,
        data.get("draft_id"),
        request.user,
        objective=data.get("objective", ""),
    )
    return JsonResponse(
        {"success": True, "created": created, "data": booking.to_payload()},
        status=201 if created else 200,
    )


@login_required
@booking_endpoint(methods=("GET",))
def booking_detail(request, workflow, data):
    detail = booking_service.booking_detail(workflow, data.get("draft_id"))
    return JsonResponse({"success": True, **detail})


@login_required
@booking_endpoint(methods=("GET",))
def booking_ledger(request, workflow, data):
    assets = booking_service.booking_ledger(workflow, data.get("draft_id"))
    return JsonResponse({"success": True, "data": assets})


@login_required
@booking_endpoint()
def generate_ref(request, workflow, data):
    booking, created = generate_reference(
        workflow, data.get("draft_id"), request.user
    )
    return JsonResponse(
        {
            "success": True,
            "created": created,
            "data": {"refID": booking.ref_id, "draft_id": booking.draft_id},
        }
    )


@login_required
@booking_endpoint()
def confirm(request, workflow, data):
    booking = booking_service.confirm_header(
        workflow, data.get("draft_id"), request.user, data
    )
    return JsonResponse({"success": True, "data": booking.to_payload()})


@login_required
@booking_endpoint()
def finalize(request, workflow, data):
    booking = booking_service.finalize_booking(
        workflow, data.get("draft_id"), request.user, data
    )
    return JsonResponse({"success": True, "data": booking.to_payload()})


@login_required
@booking_endpoint()
def unlock(request, workflow, data):
    booking = booking_service.unlock_booking(
        workflow, data.get("draft_id"), request.user
    )
    return JsonResponse({"success": True, "data": booking.to_payload()})


@login_required
@booking_endpoint()
def cancel(request, workflow, data):
    booking = booking_service.cancel_booking(
        workflow, data.get("draft_id"), request.user
    )
    return JsonResponse({"success": True, "data": booking.to_payload()})


@login_required
@ratelimit(key="user", rate=scan_rate, method="POST", block=True)
@booking_endpoint()
def scan(request, workflow, data):
    """Validate one scanner payload. Rejections are answered with 200."""
    booking, entry = scan_asset(
        workflow,
        data.get("draft_id"),
        request.user,
        data.get("qrString"),
        ref_id=data.get("refID"),
    )
    return JsonResponse(
        {
            "success": True,
            "data": entry.to_payload(),
            "attendees": booking.attendees,
            "version": booking.version,
        }
    )


def _return_response(booking, returned, skipped):
    return JsonResponse(
        {
            "success": True,
            "data": {
                "returned": returned,
                "skipped": skipped,
                "attendees": booking.attendees,
            },
        }
    )


@login_required
@booking_endpoint()
def return_assets(request, workflow, data):
    booking, returned, skipped = booking_service.return_assets(
        workflow, data.get("draft_id"), request.user, data.get("ids")
    )
    return _return_response(booking, returned, skipped)


@login_required
@booking_endpoint()
def return_single(request, workflow, data):
    booking, returned, skipped = booking_service.return_assets(
        workflow,
        data.get("draft_id"),
        request.user,
        [data.get("asset_code") or ""],
    )
    return _return_response(booking, returned, skipped)


@login_required
@booking_endpoint()
def confirm_output(request, workflow, data):
    booking = booking_service.confirm_output(
        workflow, data.get("draft_id"), request.user
    )
    return JsonResponse({"success": True, "data": booking.to_payload()})


@login_required
@booking_endpoint(methods=("GET",))
def history(request, workflow, data):
    """Reference document view: latest row per asset for a refID."""
    rows = booking_service.history_for_ref(workflow, data.get("refID"))
    return JsonResponse({"success": True, "data": rows})


@login_required
@booking_endpoint(methods=("GET",), modules=("systemrepair",))
def on_repair(request, workflow, data):
    return JsonResponse(
        {"success": True, "data": booking_service.on_repair_assets()}
    )


@login_required
@booking_endpoint(modules=("systemrepair",))
def receive_from_repair(request, workflow, data):
    received, rejected = booking_service.receive_from_repair(
        data.get("asset_codes"), request.user
    )
    return JsonResponse(
        {
            "success": True,
            "data": {"received": received, "rejected": rejected},
        }
    )
