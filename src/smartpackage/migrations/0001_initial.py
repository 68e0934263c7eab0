import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import smartpackage.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("registry", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "module",
                    models.CharField(
                        choices=[
                            ("systemout", "System Out"),
                            ("systemin", "System In"),
                            ("systemdefective", "System Defective"),
                            ("systemrepair", "System Repair"),
                        ],
                        db_index=True,
                        max_length=30,
                    ),
                ),
                (
                    "draft_id",
                    models.CharField(
                        help_text=(
                            "Client-generated token, created before the "
                            "first save"
                        ),
                        max_length=100,
                        unique=True,
                    ),
                ),
                (
                    "ref_id",
                    models.CharField(
                        blank=True,
                        help_text=(
                            "Reference number; set once and never reassigned"
                        ),
                        max_length=30,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "is_status",
                    models.CharField(db_index=True, max_length=3),
                ),
                ("objective", models.CharField(blank=True, max_length=255)),
                ("booking_remark", models.TextField(blank=True)),
                ("origin", models.CharField(blank=True, max_length=100)),
                (
                    "destination",
                    models.CharField(blank=True, max_length=100),
                ),
                (
                    "attendees",
                    models.PositiveIntegerField(
                        default=0, help_text="Number of scan ledger entries"
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Incremented on every committed change",
                    ),
                ),
                (
                    "create_date",
                    models.DateField(
                        db_index=True,
                        default=smartpackage.models.local_today,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="updated_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "permissions": [
                    ("unlock_booking", "Can unlock a finalized booking")
                ],
                "indexes": [
                    models.Index(
                        fields=["module", "create_date"],
                        name="idx_booking_module_date",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ReferenceSequence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("prefix", models.CharField(max_length=10)),
                ("day", models.DateField()),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("prefix", "day"),
                        name="unique_referencesequence_prefix_day",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ScanEntry",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("asset_code", models.CharField(max_length=100)),
                ("status_name", models.CharField(blank=True, max_length=100)),
                ("status_class", models.CharField(blank=True, max_length=50)),
                (
                    "prior_status",
                    models.CharField(
                        help_text="Asset status restored on return",
                        max_length=10,
                    ),
                ),
                (
                    "prior_origin",
                    models.CharField(blank=True, max_length=100),
                ),
                (
                    "prior_destination",
                    models.CharField(blank=True, max_length=100),
                ),
                (
                    "scan_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="scan_entries",
                        to="registry.asset",
                    ),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="entries",
                        to="smartpackage.booking",
                    ),
                ),
                (
                    "scan_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="scan_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "scan entries",
                "ordering": ["scan_at", "pk"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("booking", "asset"),
                        name="unique_scanentry_booking_asset",
                    )
                ],
            },
        ),
    ]
