"""URL configuration for the SmartPackage app.

Paths carry no trailing slash to match the existing client.
"""

from django.urls import path

from . import views

app_name = "smartpackage"

urlpatterns = [
    path("<str:module>", views.booking_list, name="booking_list"),
    path("<str:module>/dropdowns", views.dropdowns, name="dropdowns"),
    path("<str:module>/init-booking", views.init_booking, name="init_booking"),
    path("<str:module>/detail", views.booking_detail, name="detail"),
    path("<str:module>/list", views.booking_ledger, name="ledger"),
    path("<str:module>/generate-ref", views.generate_ref, name="generate_ref"),
    path("<str:module>/confirm", views.confirm, name="confirm"),
    path("<str:module>/finalize", views.finalize, name="finalize"),
    path("<str:module>/unlock", views.unlock, name="unlock"),
    path("<str:module>/cancel", views.cancel, name="cancel"),
    path("<str:module>/scan", views.scan, name="scan"),
    path("<str:module>/return", views.return_assets, name="return"),
    path(
        "<str:module>/return-single",
        views.return_single,
        name="return_single",
    ),
    path(
        "<str:module>/confirm-output",
        views.confirm_output,
        name="confirm_output",
    ),
    path("<str:module>/history", views.history, name="history"),
    path("<str:module>/on-repair", views.on_repair, name="on_repair"),
    path(
        "<str:module>/receive-from-repair",
        views.receive_from_repair,
        name="receive_from_repair",
    ),
]
