"""Factory Boy factories for asset registry test data."""

import factory
from factory.django import DjangoModelFactory

from registry.models import AssetStatus


class ZoneFactory(DjangoModelFactory):
    """Factory for Zone model."""

    class Meta:
        model = "registry.Zone"
        django_get_or_create = ("code",)

    code = factory.Sequence(lambda n: f"WH-{n}")
    name = factory.LazyAttribute(lambda o: f"Warehouse {o.code}")


class AssetStatusFactory(DjangoModelFactory):
    """Factory for AssetStatus model.

    Reuses the seeded row when the code already exists.
    """

    class Meta:
        model = "registry.AssetStatus"
        django_get_or_create = ("code",)

    code = AssetStatus.IN_STOCK
    name = factory.LazyAttribute(
        lambda o: dict((c, n) for c, n, _ in AssetStatus.DEFAULTS).get(
            o.code, o.code
        )
    )
    css_class = "gray"


class AssetFactory(DjangoModelFactory):
    """Factory for Asset model."""

    class Meta:
        model = "registry.Asset"

    asset_code = factory.Sequence(lambda n: f"PKG{n:06d}")
    part_code = "PART-A"
    detail = factory.Faker("sentence", nb_words=3)
    lot = "L01"
    doc_no = "DOC001"
    status = factory.SubFactory(AssetStatusFactory)
    origin = ""
    destination = ""
