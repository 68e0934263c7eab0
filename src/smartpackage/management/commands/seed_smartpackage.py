"""Seed asset statuses, default warehouse zones and the cleanup schedule."""

from django_celery_beat.models import IntervalSchedule, PeriodicTask

from django.core.management.base import BaseCommand

from registry.models import AssetStatus, Zone

DEFAULT_ZONES = [
    {"code": "WH-1", "name": "Main warehouse", "sort_order": 10},
    {"code": "WH-2", "name": "Production floor", "sort_order": 20},
    {"code": "WH-3", "name": "Dispatch", "sort_order": 30},
    {"code": "RP-1", "name": "Repair shop", "sort_order": 40},
]

STALE_DRAFT_TASK = "Cancel stale SmartPackage drafts"


class Command(BaseCommand):
    help = "Seed asset statuses, default zones and the stale-draft schedule"

    def add_arguments(self, parser):
        parser.add_argument(
            "--no-zones",
            action="store_true",
            help="Only seed asset statuses",
        )

    def handle(self, *args, **options):
        for code, name, css_class in AssetStatus.DEFAULTS:
            obj, created = AssetStatus.objects.update_or_create(
                code=code,
                defaults={"name": name, "css_class": css_class},
            )
            action = "Created" if created else "Updated"
            self.stdout.write(f"{action}: status {obj}")

        if options["no_zones"]:
            return

        for z in DEFAULT_ZONES:
            obj, created = Zone.objects.get_or_create(
                code=z["code"], defaults=z
            )
            action = "Created" if created else "Exists"
            self.stdout.write(f"{action}: zone {obj}")

        interval, _ = IntervalSchedule.objects.get_or_create(
            every=1, period=IntervalSchedule.HOURS
        )
        _, created = PeriodicTask.objects.get_or_create(
            name=STALE_DRAFT_TASK,
            defaults={
                "task": "smartpackage.tasks.cancel_stale_drafts",
                "interval": interval,
            },
        )
        action = "Created" if created else "Exists"
        self.stdout.write(f"{action}: periodic task {STALE_DRAFT_TASK}")
