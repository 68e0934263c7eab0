"""Celery tasks for the SmartPackage app."""

from celery import shared_task


@shared_task
def cancel_stale_drafts(max_age_hours=None):
    """Cancel abandoned DRAFT_NEW bookings.

    Drafts without a reference number or scanned assets that are older
    than SMARTPACKAGE_STALE_DRAFT_HOURS are canceled. Unlocked bookings
    are never touched.
    """
    from .services.booking import cancel_stale_drafts as cancel_drafts

    return cancel_drafts(max_age_hours=max_age_hours)
