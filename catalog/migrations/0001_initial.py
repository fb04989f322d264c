"""
Initial catalog schema: countries, producers, whiskies and related-whisky edges.
"""

import uuid
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Country",
            fields=[
                (
                    "code",
                    models.CharField(
                        help_text="ISO 3166-1 alpha-2 code",
                        max_length=2,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(help_text="English name", max_length=100)),
                (
                    "name_fr",
                    models.CharField(
                        blank=True, help_text="French name", max_length=100, null=True
                    ),
                ),
            ],
            options={
                "verbose_name": "Country",
                "verbose_name_plural": "Countries",
                "db_table": "country",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Bottler",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(help_text="Bottler name", max_length=200)),
                (
                    "slug",
                    models.SlugField(
                        blank=True,
                        help_text="URL-safe identifier",
                        max_length=200,
                        unique=True,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "merged_into",
                    models.ForeignKey(
                        blank=True,
                        help_text="Bottler this record was merged into",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="merged_from",
                        to="catalog.bottler",
                    ),
                ),
            ],
            options={
                "db_table": "bottler",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="idx_bottler_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Distiller",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(help_text="Distillery name", max_length=200)),
                (
                    "slug",
                    models.SlugField(
                        blank=True,
                        help_text="URL-safe identifier",
                        max_length=200,
                        unique=True,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "country",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="distillers",
                        to="catalog.country",
                    ),
                ),
                (
                    "merged_into",
                    models.ForeignKey(
                        blank=True,
                        help_text="Distiller this record was merged into",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="merged_from",
                        to="catalog.distiller",
                    ),
                ),
            ],
            options={
                "db_table": "distiller",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="idx_distiller_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Whisky",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(help_text="Display name", max_length=255)),
                (
                    "slug",
                    models.SlugField(
                        blank=True,
                        help_text="URL-safe identifier",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "bottling_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("DB", "Distillery Bottling"),
                            ("IB", "Independent Bottling"),
                        ],
                        help_text="DB = distillery bottling, IB = independent bottling",
                        max_length=2,
                        null=True,
                    ),
                ),
                (
                    "region",
                    models.CharField(
                        blank=True,
                        help_text="Region within country (e.g. Speyside, Islay)",
                        max_length=100,
                        null=True,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        blank=True,
                        help_text="Category (e.g. Single Malt, Blend, Bourbon)",
                        max_length=100,
                        null=True,
                    ),
                ),
                ("image_url", models.CharField(blank=True, max_length=500, null=True)),
                (
                    "bottle_image_url",
                    models.CharField(blank=True, max_length=500, null=True),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "bottler",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="whiskies",
                        to="catalog.bottler",
                    ),
                ),
                (
                    "country",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="whiskies",
                        to="catalog.country",
                    ),
                ),
                (
                    "distiller",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="whiskies",
                        to="catalog.distiller",
                    ),
                ),
            ],
            options={
                "verbose_name": "Whisky",
                "verbose_name_plural": "Whiskies",
                "db_table": "whisky",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["type"], name="idx_whisky_type"),
                    models.Index(fields=["country"], name="idx_whisky_country"),
                    models.Index(fields=["region"], name="idx_whisky_region"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WhiskyRelated",
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
                    "score",
                    models.PositiveIntegerField(
                        help_text="Relatedness score (higher is more related)"
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "related_whisky",
                    models.ForeignKey(
                        help_text="Whisky listed as related to the source",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referenced_by_edges",
                        to="catalog.whisky",
                    ),
                ),
                (
                    "whisky",
                    models.ForeignKey(
                        help_text="Source whisky",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="related_edges",
                        to="catalog.whisky",
                    ),
                ),
            ],
            options={
                "verbose_name": "Related Whisky",
                "verbose_name_plural": "Related Whiskies",
                "db_table": "whisky_related",
                "ordering": ["whisky", "-score"],
                "indexes": [
                    models.Index(
                        fields=["whisky", "score"], name="idx_whisky_related_whisky"
                    ),
                    models.Index(
                        fields=["related_whisky"], name="idx_whisky_related_related"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("whisky", "related_whisky"),
                        name="uniq_whisky_related_pair",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WhiskyRelatedState",
            fields=[
                (
                    "whisky",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="related_state",
                        serialize=False,
                        to="catalog.whisky",
                    ),
                ),
                ("computed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("edge_count", models.PositiveIntegerField(default=0)),
                (
                    "profile",
                    models.CharField(
                        choices=[
                            ("online", "Online (incremental)"),
                            ("batch", "Batch (full rebuild)"),
                        ],
                        default="online",
                        max_length=10,
                    ),
                ),
            ],
            options={
                "verbose_name": "Related Whisky State",
                "verbose_name_plural": "Related Whisky States",
                "db_table": "whisky_related_state",
            },
        ),
    ]
