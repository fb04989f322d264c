"""
Related Whisky Scoring.

Pure scoring, gating and ranking logic shared by the online rebuild path
(catalog.services.related_engine) and the offline batch rebuild
(catalog.services.related_batch). Nothing here touches the database.

Scoring rules (weights come from a ScoringProfile):
- type: both whiskies share the same non-empty type (case-insensitive)
- producer: source is DB and both share a distiller, or source is IB and
  both share a bottler. Keyed on the SOURCE's bottling type only, so
  score(a, b) is not always equal to score(b, a).
- country: both share the same country
- region: both share the same non-empty region (case-insensitive)

Profiles:
- ONLINE_PROFILE: 4/3/2/1, keeps any positive score, ties broken by name
- BATCH_PROFILE:  0/4/0/2, keeps scores >= 2, ties broken by whisky id
"""

import heapq
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

BOTTLING_DB = "DB"
BOTTLING_IB = "IB"

DEFAULT_TOP_LIMIT = 20

TIE_BREAK_NAME = "name"
TIE_BREAK_ID = "id"

# Attributes compared after trim + lowercase
TEXT_FIELDS = frozenset({"type", "region"})

# Every attribute a whisky can be bucketed on
INDEXED_FIELDS = ("type", "distiller_id", "bottler_id", "country_id", "region")


def normalize_text(value: Optional[str]) -> Optional[str]:
    """Trim and lowercase; empty strings become None."""
    if not value or not isinstance(value, str):
        return None
    clean = value.strip().lower()
    return clean or None


def _as_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class WhiskyCore:
    """
    Read-only projection of a catalog whisky.

    Holds identity plus the handful of attributes relatedness is computed
    from. Ids are carried as strings so UUID and text keys compare alike.
    """

    id: str
    name: str = ""
    bottling_type: Optional[str] = None
    distiller_id: Optional[str] = None
    bottler_id: Optional[str] = None
    country_id: Optional[str] = None
    region: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "WhiskyCore":
        """Build from a ``Whisky.objects.values(*CORE_FIELDS)`` row."""
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            bottling_type=row.get("bottling_type") or None,
            distiller_id=_as_id(row.get("distiller_id")),
            bottler_id=_as_id(row.get("bottler_id")),
            country_id=_as_id(row.get("country_id")),
            region=row.get("region") or None,
            type=row.get("type") or None,
        )

    @classmethod
    def from_whisky(cls, whisky) -> "WhiskyCore":
        """Snapshot a Whisky model instance (e.g. before mutating it)."""
        return cls(
            id=str(whisky.id),
            name=whisky.name or "",
            bottling_type=whisky.bottling_type or None,
            distiller_id=_as_id(whisky.distiller_id),
            bottler_id=_as_id(whisky.bottler_id),
            country_id=_as_id(whisky.country_id),
            region=whisky.region or None,
            type=whisky.type or None,
        )

    def has_attributes(self) -> bool:
        return any(attribute_value(self, field) for field in INDEXED_FIELDS)


# Field names as selected with QuerySet.values()
CORE_FIELDS = (
    "id",
    "name",
    "bottling_type",
    "distiller_id",
    "bottler_id",
    "country_id",
    "region",
    "type",
)


def attribute_value(core: WhiskyCore, field: str) -> Optional[str]:
    """Comparable value of one attribute (normalized for text fields)."""
    value = getattr(core, field)
    if field in TEXT_FIELDS:
        return normalize_text(value)
    return value or None


@dataclass(frozen=True)
class ScoringProfile:
    """
    Named weights and ranking policy for relatedness scoring.

    Attributes:
        name: Profile identifier (stored on WhiskyRelatedState)
        type_weight: Points for a shared type
        producer_weight: Points for a shared producer (per source bottling type)
        country_weight: Points for a shared country
        region_weight: Points for a shared region
        min_score: Lowest score kept as an edge
        tie_break: "name" or "id" ordering among equal scores
        top_limit: Default number of edges kept per source
    """

    name: str
    type_weight: int
    producer_weight: int
    country_weight: int
    region_weight: int
    min_score: int = 1
    tie_break: str = TIE_BREAK_NAME
    top_limit: int = DEFAULT_TOP_LIMIT


ONLINE_PROFILE = ScoringProfile(
    name="online",
    type_weight=4,
    producer_weight=3,
    country_weight=2,
    region_weight=1,
    min_score=1,
    tie_break=TIE_BREAK_NAME,
)

# Full rebuild: type and country carry no weight
BATCH_PROFILE = ScoringProfile(
    name="batch",
    type_weight=0,
    producer_weight=4,
    country_weight=0,
    region_weight=2,
    min_score=2,
    tie_break=TIE_BREAK_ID,
)


def producer_field(source: WhiskyCore) -> Optional[str]:
    """Producer attribute that counts for this source, if any."""
    if source.bottling_type == BOTTLING_DB:
        return "distiller_id"
    if source.bottling_type == BOTTLING_IB:
        return "bottler_id"
    return None


def profile_dimensions(
    source: WhiskyCore,
    profile: ScoringProfile = ONLINE_PROFILE,
) -> List[Tuple[str, str, int]]:
    """
    Attributes of the source that can earn points under a profile.

    This is the single gating definition: the scorer sums over it and the
    candidate prefilters (ORM and in-memory) OR over it, so adding a signal
    here keeps all three aligned.

    Returns:
        List of (field, comparable value, weight) with weight > 0
    """
    dimensions = []

    candidates = [
        ("type", profile.type_weight),
        (producer_field(source), profile.producer_weight),
        ("country_id", profile.country_weight),
        ("region", profile.region_weight),
    ]
    for field, weight in candidates:
        if field is None or weight <= 0:
            continue
        value = attribute_value(source, field)
        if value:
            dimensions.append((field, value, weight))

    return dimensions


def score_whisky_pair(
    source: WhiskyCore,
    candidate: WhiskyCore,
    profile: ScoringProfile = ONLINE_PROFILE,
) -> int:
    """Relatedness of candidate to source; 0 when nothing is shared."""
    score = 0
    for field, value, weight in profile_dimensions(source, profile):
        if attribute_value(candidate, field) == value:
            score += weight
    return score


def could_score(
    source: WhiskyCore,
    candidate: WhiskyCore,
    profile: ScoringProfile = ONLINE_PROFILE,
) -> bool:
    """In-memory mirror of the candidate prefilter."""
    if candidate.id == source.id:
        return False
    return any(
        attribute_value(candidate, field) == value
        for field, value, _ in profile_dimensions(source, profile)
    )


@dataclass(frozen=True)
class RankedCandidate:
    """One scored candidate that survived ranking."""

    whisky_id: str
    name: str
    score: int


def _sort_key(profile: ScoringProfile):
    if profile.tie_break == TIE_BREAK_ID:
        return lambda entry: (-entry.score, entry.whisky_id)
    return lambda entry: (-entry.score, entry.name.casefold(), entry.name, entry.whisky_id)


def clamp_top_limit(top_limit: Optional[int], profile: ScoringProfile = ONLINE_PROFILE) -> int:
    if top_limit is None:
        top_limit = profile.top_limit
    return max(1, int(top_limit))


def rank_candidates(
    source: WhiskyCore,
    candidates: Iterable[WhiskyCore],
    profile: ScoringProfile = ONLINE_PROFILE,
    top_limit: Optional[int] = None,
) -> List[RankedCandidate]:
    """
    Score, threshold, order and truncate candidates for one source.

    Args:
        source: Whisky the related list is built for
        candidates: Prefiltered whiskies (the source itself is skipped)
        profile: Weights, threshold and tie-break policy
        top_limit: Maximum entries kept (default: profile.top_limit)

    Returns:
        Best candidates, highest score first
    """
    limit = clamp_top_limit(top_limit, profile)
    threshold = max(1, profile.min_score)

    eligible = []
    for candidate in candidates:
        if candidate.id == source.id:
            continue
        score = score_whisky_pair(source, candidate, profile)
        if score >= threshold:
            eligible.append(RankedCandidate(candidate.id, candidate.name, score))

    return heapq.nsmallest(limit, eligible, key=_sort_key(profile))


class CandidateIndex:
    """
    Bucket index over whisky attributes for in-memory candidate lookup.

    Each (field, value) bucket lists the whiskies carrying that value, so a
    source's candidates are the union of the buckets its profile dimensions
    point at instead of the whole catalog.
    """

    def __init__(self, cores: Iterable[WhiskyCore]):
        self.cores = list(cores)
        self._buckets: Dict[Tuple[str, str], List[WhiskyCore]] = defaultdict(list)
        for core in self.cores:
            for field in INDEXED_FIELDS:
                value = attribute_value(core, field)
                if value:
                    self._buckets[(field, value)].append(core)

    def __len__(self):
        return len(self.cores)

    def bucket(self, field: str, value: str) -> List[WhiskyCore]:
        return self._buckets.get((field, value), [])

    def candidates_for(
        self,
        source: WhiskyCore,
        profile: ScoringProfile = ONLINE_PROFILE,
    ) -> Iterator[WhiskyCore]:
        seen = {source.id}
        for field, value, _ in profile_dimensions(source, profile):
            for candidate in self.bucket(field, value):
                if candidate.id not in seen:
                    seen.add(candidate.id)
                    yield candidate
