"""
Django models for the Whisky Catalog.

Models: Country, Distiller, Bottler, Whisky, WhiskyRelated, WhiskyRelatedState

Whisky carries the categorical attributes the related-whisky engine scores on
(type, bottling type, producer, country, region). WhiskyRelated stores the
ranked, directed "related whiskies" edges; WhiskyRelatedState records when a
whisky's edge set was last computed.
"""

import uuid
from django.db import models
from django.utils import timezone
from django.utils.text import slugify


class BottlingType(models.TextChoices):
    """Who released the bottling."""

    DISTILLERY = "DB", "Distillery Bottling"
    INDEPENDENT = "IB", "Independent Bottling"


class ProducerKind(models.TextChoices):
    """Kinds of producer a whisky can be attributed to."""

    DISTILLER = "distiller", "Distiller"
    BOTTLER = "bottler", "Bottler"


class RelatedProfile(models.TextChoices):
    """Which scoring profile produced a whisky's related set."""

    ONLINE = "online", "Online (incremental)"
    BATCH = "batch", "Batch (full rebuild)"


def _unique_slug(model, name, instance_id):
    base_slug = slugify(name) or "item"
    slug = base_slug
    counter = 1
    while model.objects.filter(slug=slug).exclude(id=instance_id).exists():
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


class Country(models.Model):
    """Country of origin, keyed by ISO 3166-1 alpha-2 code."""

    code = models.CharField(
        max_length=2,
        primary_key=True,
        help_text="ISO 3166-1 alpha-2 code",
    )
    name = models.CharField(
        max_length=100,
        help_text="English name",
    )
    name_fr = models.CharField(
        max_length=100,
        blank=True,
        null=True,
        help_text="French name",
    )

    class Meta:
        db_table = "country"
        ordering = ["name"]
        verbose_name = "Country"
        verbose_name_plural = "Countries"

    def __str__(self):
        return self.name

    def localized_name(self, locale: str) -> str:
        if locale == "fr" and self.name_fr:
            return self.name_fr
        return self.name


class Distiller(models.Model):
    """A distillery producing the spirit."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(
        max_length=200,
        help_text="Distillery name",
    )
    slug = models.SlugField(
        max_length=200,
        unique=True,
        blank=True,
        help_text="URL-safe identifier",
    )
    country = models.ForeignKey(
        Country,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="distillers",
    )

    # Merge tracking
    is_active = models.BooleanField(default=True)
    merged_into = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="merged_from",
        help_text="Distiller this record was merged into",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "distiller"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="idx_distiller_name"),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        """Auto-generate slug if not provided."""
        if not self.slug:
            self.slug = _unique_slug(Distiller, self.name, self.id)
        super().save(*args, **kwargs)


class Bottler(models.Model):
    """An independent bottler releasing casks bought from distilleries."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(
        max_length=200,
        help_text="Bottler name",
    )
    slug = models.SlugField(
        max_length=200,
        unique=True,
        blank=True,
        help_text="URL-safe identifier",
    )

    # Merge tracking
    is_active = models.BooleanField(default=True)
    merged_into = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="merged_from",
        help_text="Bottler this record was merged into",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "bottler"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="idx_bottler_name"),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        """Auto-generate slug if not provided."""
        if not self.slug:
            self.slug = _unique_slug(Bottler, self.name, self.id)
        super().save(*args, **kwargs)


class Whisky(models.Model):
    """
    A catalog whisky.

    Only the fields used for relatedness and display are modelled here;
    tasting notes, barcodes and the rest of the product live elsewhere.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Identity
    name = models.CharField(
        max_length=255,
        help_text="Display name",
    )
    slug = models.SlugField(
        max_length=255,
        unique=True,
        blank=True,
        help_text="URL-safe identifier",
    )

    # Relatedness attributes
    bottling_type = models.CharField(
        max_length=2,
        choices=BottlingType.choices,
        blank=True,
        null=True,
        help_text="DB = distillery bottling, IB = independent bottling",
    )
    distiller = models.ForeignKey(
        Distiller,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="whiskies",
    )
    bottler = models.ForeignKey(
        Bottler,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="whiskies",
    )
    country = models.ForeignKey(
        Country,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="whiskies",
    )
    region = models.CharField(
        max_length=100,
        blank=True,
        null=True,
        help_text="Region within country (e.g. Speyside, Islay)",
    )
    type = models.CharField(
        max_length=100,
        blank=True,
        null=True,
        help_text="Category (e.g. Single Malt, Blend, Bourbon)",
    )

    # Normalized copies of type/region, maintained by save() and matched by
    # the related-whisky candidate queries
    type_norm = models.CharField(max_length=100, blank=True, null=True, editable=False)
    region_norm = models.CharField(max_length=100, blank=True, null=True, editable=False)

    # Images
    image_url = models.CharField(max_length=500, blank=True, null=True)
    bottle_image_url = models.CharField(max_length=500, blank=True, null=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "whisky"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["type"], name="idx_whisky_type"),
            models.Index(fields=["country"], name="idx_whisky_country"),
            models.Index(fields=["region"], name="idx_whisky_region"),
            models.Index(fields=["type_norm"], name="idx_whisky_type_norm"),
            models.Index(fields=["region_norm"], name="idx_whisky_region_norm"),
        ]
        verbose_name = "Whisky"
        verbose_name_plural = "Whiskies"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        """Auto-generate slug if not provided and refresh normalized attributes."""
        from catalog.services.related_scoring import normalize_text

        if not self.slug:
            self.slug = _unique_slug(Whisky, self.name, self.id)

        self.type_norm = normalize_text(self.type)
        self.region_norm = normalize_text(self.region)

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            update_fields = set(update_fields)
            if "type" in update_fields:
                update_fields.add("type_norm")
            if "region" in update_fields:
                update_fields.add("region_norm")
            kwargs["update_fields"] = update_fields

        super().save(*args, **kwargs)

    @property
    def display_image_url(self):
        return self.bottle_image_url or self.image_url


class WhiskyRelated(models.Model):
    """
    Directed "related whisky" edge.

    Edge sets are replaced wholesale per source whisky; at most one edge per
    (whisky, related_whisky) pair and at most the configured top limit per
    source.
    """

    whisky = models.ForeignKey(
        Whisky,
        on_delete=models.CASCADE,
        related_name="related_edges",
        help_text="Source whisky",
    )
    related_whisky = models.ForeignKey(
        Whisky,
        on_delete=models.CASCADE,
        related_name="referenced_by_edges",
        help_text="Whisky listed as related to the source",
    )
    score = models.PositiveIntegerField(
        help_text="Relatedness score (higher is more related)",
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "whisky_related"
        ordering = ["whisky", "-score"]
        constraints = [
            models.UniqueConstraint(
                fields=["whisky", "related_whisky"],
                name="uniq_whisky_related_pair",
            ),
        ]
        indexes = [
            models.Index(fields=["whisky", "score"], name="idx_whisky_related_whisky"),
            models.Index(fields=["related_whisky"], name="idx_whisky_related_related"),
        ]
        verbose_name = "Related Whisky"
        verbose_name_plural = "Related Whiskies"

    def __str__(self):
        return f"{self.whisky_id} -> {self.related_whisky_id} ({self.score})"


class WhiskyRelatedState(models.Model):
    """
    Marks that a whisky's related set has been computed.

    Present with edge_count=0 means "computed, no matches"; absent means
    "never computed".
    """

    whisky = models.OneToOneField(
        Whisky,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="related_state",
    )
    computed_at = models.DateTimeField(default=timezone.now)
    edge_count = models.PositiveIntegerField(default=0)
    profile = models.CharField(
        max_length=10,
        choices=RelatedProfile.choices,
        default=RelatedProfile.ONLINE,
    )

    class Meta:
        db_table = "whisky_related_state"
        verbose_name = "Related Whisky State"
        verbose_name_plural = "Related Whisky States"

    def __str__(self):
        return f"{self.whisky_id}: {self.edge_count} edges ({self.profile})"
