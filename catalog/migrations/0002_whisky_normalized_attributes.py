"""
Store normalized type/region on whiskies so candidate queries match exactly
what the scorer compares, independent of the database's LOWER/TRIM.
"""

from django.db import migrations, models


def populate_normalized_attributes(apps, schema_editor):
    from catalog.services.related_scoring import normalize_text

    Whisky = apps.get_model("catalog", "Whisky")
    batch = []
    for whisky in Whisky.objects.only("id", "type", "region").iterator():
        whisky.type_norm = normalize_text(whisky.type)
        whisky.region_norm = normalize_text(whisky.region)
        batch.append(whisky)
        if len(batch) >= 500:
            Whisky.objects.bulk_update(batch, ["type_norm", "region_norm"])
            batch = []
    if batch:
        Whisky.objects.bulk_update(batch, ["type_norm", "region_norm"])


class Migration(migrations.Migration):

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="whisky",
            name="type_norm",
            field=models.CharField(blank=True, editable=False, max_length=100, null=True),
        ),
        migrations.AddField(
            model_name="whisky",
            name="region_norm",
            field=models.CharField(blank=True, editable=False, max_length=100, null=True),
        ),
        migrations.AddIndex(
            model_name="whisky",
            index=models.Index(fields=["type_norm"], name="idx_whisky_type_norm"),
        ),
        migrations.AddIndex(
            model_name="whisky",
            index=models.Index(fields=["region_norm"], name="idx_whisky_region_norm"),
        ),
        migrations.RunPython(populate_normalized_attributes, migrations.RunPython.noop),
    ]
