"""Factory Boy factories for SmartPackage test data."""

import factory
from factory.django import DjangoModelFactory

from .workflows import get_workflow


class BookingFactory(DjangoModelFactory):
    """Factory for Booking model.

    ``is_status`` defaults to the module's DRAFT_NEW code.
    """

    class Meta:
        model = "smartpackage.Booking"

    module = "systemin"
    draft_id = factory.Sequence(lambda n: f"D-{n:06d}")
    is_status = factory.LazyAttribute(
        lambda o: get_workflow(o.module).status.NEW
    )
    objective = "Receive returned boxes"


class ScanEntryFactory(DjangoModelFactory):
    """Factory for ScanEntry model."""

    class Meta:
        model = "smartpackage.ScanEntry"

    booking = factory.SubFactory(BookingFactory)
    asset = factory.SubFactory("registry.factories.AssetFactory")
    asset_code = factory.LazyAttribute(lambda o: o.asset.asset_code)
    status_name = factory.LazyAttribute(lambda o: o.asset.status.name)
    status_class = factory.LazyAttribute(lambda o: o.asset.status.css_class)
    prior_status = factory.LazyAttribute(lambda o: o.asset.status_id)
