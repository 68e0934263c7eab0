"""Management command to create the warehouse permission groups."""

from django.contrib.auth.models import Group, Permission
from django.contrib.contenttypes.models import ContentType
from django.core.management.base import BaseCommand

from registry.models import Asset, AssetHistory, Zone
from smartpackage.models import Booking, ScanEntry


class Command(BaseCommand):
    help = "Create the Warehouse Staff and Warehouse Supervisor groups"

    def handle(self, *args, **options):
        booking_ct = ContentType.objects.get_for_model(Booking)
        entry_ct = ContentType.objects.get_for_model(ScanEntry)
        asset_ct = ContentType.objects.get_for_model(Asset)
        history_ct = ContentType.objects.get_for_model(AssetHistory)
        zone_ct = ContentType.objects.get_for_model(Zone)

        def get_perm(codename, ct):
            return Permission.objects.get(codename=codename, content_type=ct)

        staff_perms = [
            get_perm("view_booking", booking_ct),
            get_perm("add_booking", booking_ct),
            get_perm("change_booking", booking_ct),
            get_perm("view_scanentry", entry_ct),
            get_perm("view_asset", asset_ct),
            get_perm("view_assethistory", history_ct),
            get_perm("view_zone", zone_ct),
        ]

        staff, _ = Group.objects.get_or_create(name="Warehouse Staff")
        staff.permissions.set(staff_perms)
        self.stdout.write(
            self.style.SUCCESS("Created/updated 'Warehouse Staff' group")
        )

        supervisor, _ = Group.objects.get_or_create(
            name="Warehouse Supervisor"
        )
        supervisor.permissions.set(
            staff_perms
            + [
                get_perm("unlock_booking", booking_ct),
                get_perm("change_asset", asset_ct),
                get_perm("add_zone", zone_ct),
                get_perm("change_zone", zone_ct),
            ]
        )
        self.stdout.write(
            self.style.SUCCESS("Created/updated 'Warehouse Supervisor' group")
        )

        self.stdout.write(
            self.style.SUCCESS("All permission groups configured.")
        )
