import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("registry", "0001_initial"),
        ("smartpackage", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="asset",
            name="current_booking",
            field=models.ForeignKey(
                blank=True,
                help_text="Booking currently holding this asset",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="held_assets",
                to="smartpackage.booking",
            ),
        ),
    ]
