import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Zone",
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
                    "code",
                    models.CharField(
                        help_text="Value stored as a booking origin or destination",
                        max_length=30,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                (
                    "description",
                    models.CharField(blank=True, max_length=255),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
            ],
            options={
                "ordering": ["sort_order", "code"],
            },
        ),
        migrations.CreateModel(
            name="AssetStatus",
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
                ("code", models.CharField(max_length=10, unique=True)),
                ("name", models.CharField(max_length=100)),
                (
                    "css_class",
                    models.CharField(
                        blank=True,
                        help_text=(
                            "Colour/class name the client uses to render "
                            "the status"
                        ),
                        max_length=50,
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "verbose_name_plural": "asset statuses",
            },
        ),
        migrations.CreateModel(
            name="Asset",
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
                ("asset_code", models.CharField(max_length=100, unique=True)),
                (
                    "part_code",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Grouping key for the type of asset",
                        max_length=100,
                    ),
                ),
                ("detail", models.CharField(blank=True, max_length=255)),
                ("lot", models.CharField(blank=True, max_length=100)),
                ("doc_no", models.CharField(blank=True, max_length=100)),
                ("origin", models.CharField(blank=True, max_length=100)),
                (
                    "destination",
                    models.CharField(blank=True, max_length=100),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_assets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "status",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assets",
                        to="registry.assetstatus",
                        to_field="code",
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="updated_assets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["asset_code"],
                "indexes": [
                    models.Index(fields=["status"], name="idx_asset_status")
                ],
            },
        ),
        migrations.CreateModel(
            name="AssetHistory",
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
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("scan", "Scan"),
                            ("return", "Return"),
                            (
                                "correction_return",
                                "Returned during correction",
                            ),
                            ("finalize", "Finalize"),
                            ("refinalize", "Re-finalize"),
                            ("confirm_output", "Confirm output"),
                            ("receive_repair", "Received from repair"),
                        ],
                        max_length=30,
                    ),
                ),
                ("module", models.CharField(blank=True, max_length=30)),
                (
                    "draft_id",
                    models.CharField(blank=True, db_index=True, max_length=100),
                ),
                (
                    "ref_id",
                    models.CharField(blank=True, db_index=True, max_length=30),
                ),
                (
                    "status",
                    models.CharField(
                        help_text="Asset status code at the time of the row",
                        max_length=10,
                    ),
                ),
                ("origin", models.CharField(blank=True, max_length=100)),
                (
                    "destination",
                    models.CharField(blank=True, max_length=100),
                ),
                ("booking_remark", models.TextField(blank=True)),
                ("scan_at", models.DateTimeField(blank=True, null=True)),
                (
                    "timestamp",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="history",
                        to="registry.asset",
                    ),
                ),
                (
                    "scan_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="The user who performed the action",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="asset_history",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "asset history",
                "ordering": ["-timestamp", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["timestamp"],
                        name="idx_assethistory_timestamp",
                    ),
                    models.Index(
                        fields=["action"], name="idx_assethistory_action"
                    ),
                ],
            },
        ),
    ]
