"""
Related Whisky Engine (online path).

Keeps each whisky's persisted "related whiskies" list fresh after catalog
writes without recomputing the whole catalog.

Pipeline per whisky:
1. get_whisky_core: load the source attributes
2. get_candidate_whiskies: ORM prefilter (OR over the profile dimensions)
3. rank_candidates: score, keep score > 0, order by score then name, top-K
4. replace_related_set: delete + bulk insert + computed marker, one transaction

Entry points:
- rebuild_related_for_one(whisky_id)
- rebuild_related_for_impact_cluster(whisky_id, previous=None)
- rebuild_related_for_many(whisky_ids, previous=None)
- rebuild_related_for_all()

The impact cluster is one hop: every whisky sharing any attribute value with
the mutated whisky. Callers that change attributes should pass the
pre-mutation WhiskyCore as ``previous`` so whiskies related through the old
values are rebuilt too.
"""

import logging
import time
from typing import Iterable, List, Mapping, Optional, Set, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from catalog.models import Whisky, WhiskyRelated, WhiskyRelatedState
from catalog.services.related_scoring import (
    CORE_FIELDS,
    DEFAULT_TOP_LIMIT,
    INDEXED_FIELDS,
    ONLINE_PROFILE,
    RankedCandidate,
    ScoringProfile,
    WhiskyCore,
    attribute_value,
    clamp_top_limit,
    profile_dimensions,
    rank_candidates,
)

logger = logging.getLogger(__name__)


# Columns queried for each comparable attribute; type/region use the
# normalized copies Whisky.save() maintains with normalize_text()
FIELD_LOOKUPS = {
    "type": "type_norm",
    "region": "region_norm",
    "distiller_id": "distiller_id",
    "bottler_id": "bottler_id",
    "country_id": "country_id",
}


def get_top_limit(top_limit: Optional[int] = None) -> int:
    """Configured top-K (WHISKY_RELATED_TOP_LIMIT) unless overridden."""
    if top_limit is None:
        top_limit = getattr(settings, "WHISKY_RELATED_TOP_LIMIT", DEFAULT_TOP_LIMIT)
    return clamp_top_limit(top_limit)


def _match_query(conditions: Iterable[Tuple[str, str]]) -> Optional[Q]:
    """OR together (field, value) equality conditions; None when empty."""
    query = None
    for field, value in conditions:
        clause = Q(**{FIELD_LOOKUPS[field]: value})
        query = clause if query is None else query | clause
    return query


def get_whisky_core(whisky_id) -> Optional[WhiskyCore]:
    """Current attributes of a whisky, or None if it no longer exists."""
    row = Whisky.objects.filter(pk=whisky_id).values(*CORE_FIELDS).first()
    if row is None:
        return None
    return WhiskyCore.from_row(row)


def candidate_conditions(
    source: WhiskyCore,
    profile: ScoringProfile = ONLINE_PROFILE,
) -> List[Tuple[str, str]]:
    return [(field, value) for field, value, _ in profile_dimensions(source, profile)]


def get_candidate_whiskies(
    source: WhiskyCore,
    profile: ScoringProfile = ONLINE_PROFILE,
) -> List[WhiskyCore]:
    """
    Whiskies that could score above zero against the source.

    Uses the same gating as the scorer: same type, same country, same region,
    same distiller only for DB sources, same bottler only for IB sources.
    The source itself is excluded.
    """
    query = _match_query(candidate_conditions(source, profile))
    if query is None:
        return []

    rows = (
        Whisky.objects
        .filter(query)
        .exclude(pk=source.id)
        .values(*CORE_FIELDS)
    )
    return [WhiskyCore.from_row(row) for row in rows]


def replace_related_set(
    whisky_id,
    ranked: List[RankedCandidate],
    profile: ScoringProfile = ONLINE_PROFILE,
) -> int:
    """
    Replace a whisky's whole related set in one transaction.

    Deletes every edge for the source, inserts the ranked edges with a fresh
    timestamp and records the computed marker. On error nothing changes.

    The source and candidates are re-read under the write lock: a source
    deleted since scoring ends up with no edges and no marker, and deleted
    candidates are skipped.

    Returns:
        Number of edges written
    """
    now = timezone.now()
    candidate_ids = [entry.whisky_id for entry in ranked]

    with transaction.atomic():
        if not Whisky.objects.select_for_update().filter(pk=whisky_id).exists():
            WhiskyRelated.objects.filter(whisky_id=whisky_id).delete()
            WhiskyRelatedState.objects.filter(whisky_id=whisky_id).delete()
            logger.debug(f"Whisky {whisky_id} deleted before write, cleared related set")
            return 0

        existing = set()
        if candidate_ids:
            rows = Whisky.objects.filter(pk__in=candidate_ids).values_list("id", flat=True)
            existing = {str(pk) for pk in rows}

        edges = [
            WhiskyRelated(
                whisky_id=whisky_id,
                related_whisky_id=entry.whisky_id,
                score=entry.score,
                created_at=now,
                updated_at=now,
            )
            for entry in ranked
            if entry.whisky_id in existing
        ]

        WhiskyRelated.objects.filter(whisky_id=whisky_id).delete()
        if edges:
            WhiskyRelated.objects.bulk_create(edges)
        WhiskyRelatedState.objects.update_or_create(
            whisky_id=whisky_id,
            defaults={
                "computed_at": now,
                "edge_count": len(edges),
                "profile": profile.name,
            },
        )

    return len(edges)


def clear_related_set(whisky_id) -> None:
    """Drop the edges and computed marker of a whisky."""
    with transaction.atomic():
        WhiskyRelated.objects.filter(whisky_id=whisky_id).delete()
        WhiskyRelatedState.objects.filter(whisky_id=whisky_id).delete()


def has_computed_related(whisky_id) -> bool:
    """True once a rebuild has run for the whisky, even with zero matches."""
    return WhiskyRelatedState.objects.filter(whisky_id=whisky_id).exists()


def impact_conditions(core: WhiskyCore) -> List[Tuple[str, str]]:
    """Every non-empty attribute, both producer ids regardless of bottling type."""
    conditions = []
    for field in INDEXED_FIELDS:
        value = attribute_value(core, field)
        if value:
            conditions.append((field, value))
    return conditions


def collect_impacted_ids(whisky_id, previous: Optional[WhiskyCore] = None) -> Set[str]:
    """
    One-hop set of whiskies whose related lists may be stale.

    Args:
        whisky_id: The mutated whisky
        previous: Its attributes before the mutation, if the caller captured them

    Returns:
        {whisky_id} plus every whisky sharing a current (or previous) value
    """
    whisky_id = str(whisky_id)
    impacted = {whisky_id}

    conditions = []
    for core in (get_whisky_core(whisky_id), previous):
        if core is not None:
            conditions.extend(impact_conditions(core))

    query = _match_query(conditions)
    if query is None:
        return impacted

    ids = Whisky.objects.filter(query).values_list("id", flat=True)
    impacted.update(str(pk) for pk in ids)
    return impacted


def rebuild_related_for_one(whisky_id, top_limit: Optional[int] = None) -> int:
    """
    Recompute and persist the related set of a single whisky.

    A whisky that no longer exists ends up with no edges and no marker.

    Returns:
        Number of edges written
    """
    whisky_id = str(whisky_id)
    source = get_whisky_core(whisky_id)

    if source is None:
        clear_related_set(whisky_id)
        logger.debug(f"Whisky {whisky_id} not found, cleared related set")
        return 0

    candidates = get_candidate_whiskies(source, ONLINE_PROFILE)
    ranked = rank_candidates(source, candidates, ONLINE_PROFILE, get_top_limit(top_limit))
    written = replace_related_set(whisky_id, ranked, ONLINE_PROFILE)

    logger.debug(
        f"Rebuilt related for {whisky_id}: {written} edges from {len(candidates)} candidates"
    )
    return written


def _rebuild_ids(ids: Iterable[str], top_limit: Optional[int]) -> int:
    count = 0
    for whisky_id in sorted(ids):
        rebuild_related_for_one(whisky_id, top_limit=top_limit)
        count += 1
    return count


def rebuild_related_for_impact_cluster(
    whisky_id,
    previous: Optional[WhiskyCore] = None,
    top_limit: Optional[int] = None,
) -> int:
    """
    Rebuild a whisky and every whisky one hop away from it.

    Returns:
        Number of whiskies rebuilt
    """
    started = time.monotonic()
    ids = collect_impacted_ids(whisky_id, previous=previous)
    count = _rebuild_ids(ids, top_limit)

    logger.info(
        f"Rebuilt related impact cluster of {whisky_id}: {count} whiskies "
        f"in {time.monotonic() - started:.2f}s"
    )
    return count


def rebuild_related_for_many(
    whisky_ids: Iterable,
    previous: Optional[Mapping[str, WhiskyCore]] = None,
    top_limit: Optional[int] = None,
) -> int:
    """
    Rebuild the union of the impact clusters of several seeds.

    Seeds are deduplicated; each contributes one hop (no transitive closure).

    Args:
        whisky_ids: Seed whisky ids (empty values ignored)
        previous: Optional pre-mutation snapshots keyed by seed id
        top_limit: Override of the configured top-K

    Returns:
        Number of whiskies rebuilt
    """
    started = time.monotonic()
    previous = previous or {}
    seeds = list(dict.fromkeys(str(pk) for pk in whisky_ids if pk))

    impacted: Set[str] = set()
    for seed in seeds:
        impacted |= collect_impacted_ids(seed, previous=previous.get(seed))

    count = _rebuild_ids(impacted, top_limit)

    logger.info(
        f"Rebuilt related for {len(seeds)} seeds: {count} whiskies "
        f"in {time.monotonic() - started:.2f}s"
    )
    return count


def rebuild_related_for_all(top_limit: Optional[int] = None) -> int:
    """
    Rebuild every whisky one by one. Maintenance use only.

    Returns:
        Number of whiskies rebuilt
    """
    started = time.monotonic()
    ids = [str(pk) for pk in Whisky.objects.order_by().values_list("id", flat=True)]
    count = _rebuild_ids(ids, top_limit)

    logger.info(
        f"Rebuilt related for all {count} whiskies in {time.monotonic() - started:.2f}s"
    )
    return count
