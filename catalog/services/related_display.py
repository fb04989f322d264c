"""
Related whiskies for display.

Read-only: joins the persisted edges of a whisky with the current name,
image, producer and localized country of each related whisky. Never
recomputes, so a missed rebuild shows stale (but fast) results.
"""

from typing import Any, Dict, List

from django.db.models.functions import Lower

from catalog.models import BottlingType, ProducerKind, WhiskyRelated

SUPPORTED_LOCALES = ("en", "fr")
DEFAULT_LOCALE = "en"


def resolve_locale(locale: str) -> str:
    """Fold a requested locale onto a supported one ("fr-CA" -> "fr")."""
    short = (locale or "").strip().lower()[:2]
    return short if short in SUPPORTED_LOCALES else DEFAULT_LOCALE


def _producer(whisky):
    """The bottler for IB whiskies, the distiller otherwise; falls back to whichever exists."""
    distiller = whisky.distiller
    bottler = whisky.bottler

    if whisky.bottling_type == BottlingType.INDEPENDENT and bottler is not None:
        return bottler.name, ProducerKind.BOTTLER.value
    if distiller is not None:
        return distiller.name, ProducerKind.DISTILLER.value
    if bottler is not None:
        return bottler.name, ProducerKind.BOTTLER.value
    return None, None


def get_related_whiskies_for_display(
    whisky_id,
    locale: str = DEFAULT_LOCALE,
    limit: int = 4,
) -> List[Dict[str, Any]]:
    """
    Related whiskies of one whisky, ready for the detail page.

    Args:
        whisky_id: Source whisky
        locale: "en" or "fr" (controls the country name)
        limit: Maximum number of entries

    Returns:
        Dicts ordered by stored score desc, then name (case-insensitive)
    """
    locale = resolve_locale(locale)
    limit = max(0, int(limit))
    if limit == 0:
        return []

    edges = (
        WhiskyRelated.objects.filter(whisky_id=whisky_id)
        .select_related(
            "related_whisky",
            "related_whisky__distiller",
            "related_whisky__bottler",
            "related_whisky__country",
        )
        .order_by("-score", Lower("related_whisky__name"), "related_whisky__name")[:limit]
    )

    results = []
    for edge in edges:
        whisky = edge.related_whisky
        producer_name, producer_kind = _producer(whisky)
        results.append({
            "id": str(whisky.id),
            "slug": whisky.slug,
            "name": whisky.name,
            "image_url": whisky.display_image_url,
            "type": whisky.type,
            "score": int(edge.score or 0),
            "producer_name": producer_name,
            "producer_kind": producer_kind,
            "distiller_name": whisky.distiller.name if whisky.distiller else None,
            "bottler_name": whisky.bottler.name if whisky.bottler else None,
            "bottling_type": whisky.bottling_type,
            "country_name": whisky.country.localized_name(locale) if whisky.country else None,
        })

    return results
