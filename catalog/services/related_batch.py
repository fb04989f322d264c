"""
Full-catalog related whisky rebuild (offline batch path).

Recomputes the whole whisky_related table in one pass:
1. Load every whisky's attributes in a single query
2. Bucket them per attribute value (CandidateIndex)
3. Rank each whisky against its bucket neighbours with BATCH_PROFILE
   (producer +4, region +2, min score 2, ties by id)
4. Replace every edge and computed marker inside one transaction

Scoring happens before the transaction opens, so write locks are only
held for the delete + insert.

Run through the management command:
    python manage.py rebuild_whisky_related --top=20
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Tuple

from django.db import DEFAULT_DB_ALIAS, connections, transaction
from django.utils import timezone

from catalog.models import Whisky, WhiskyRelated, WhiskyRelatedState
from catalog.services.related_scoring import (
    BATCH_PROFILE,
    CORE_FIELDS,
    CandidateIndex,
    RankedCandidate,
    ScoringProfile,
    WhiskyCore,
    rank_candidates,
)

logger = logging.getLogger(__name__)

# Rows per INSERT statement; SQLite caps the bound parameters of one statement
INSERT_BATCH_SIZE = {
    "sqlite": 150,
    "mysql": 1000,
    "postgresql": 1000,
}
DEFAULT_INSERT_BATCH_SIZE = 500


@dataclass
class BatchRebuildResult:
    """Outcome of a full rebuild."""

    dialect: str
    relation_count: int = 0
    whisky_count: int = 0
    dry_run: bool = False
    duration_seconds: float = 0.0

    def summary(self) -> str:
        return (
            f"Rebuild done ({self.dialect}): {self.relation_count} relations "
            f"for {self.whisky_count} entities."
        )


def load_whisky_cores(using: str = DEFAULT_DB_ALIAS) -> List[WhiskyCore]:
    rows = Whisky.objects.using(using).order_by().values(*CORE_FIELDS)
    return [WhiskyCore.from_row(row) for row in rows]


def build_related_rows(
    cores: List[WhiskyCore],
    profile: ScoringProfile = BATCH_PROFILE,
    top_limit: Optional[int] = None,
) -> List[Tuple[str, RankedCandidate]]:
    """
    Rank every whisky against its bucket neighbours.

    Returns:
        (source id, ranked candidate) pairs for the whole catalog
    """
    index = CandidateIndex(cores)
    rows = []
    for source in index.cores:
        ranked = rank_candidates(
            source,
            index.candidates_for(source, profile),
            profile,
            top_limit,
        )
        rows.extend((source.id, entry) for entry in ranked)
    return rows


def write_all_related(
    rows: List[Tuple[str, RankedCandidate]],
    cores: List[WhiskyCore],
    dialect: str,
    profile: ScoringProfile = BATCH_PROFILE,
    using: str = DEFAULT_DB_ALIAS,
) -> None:
    """Replace every edge and marker atomically; rolls back on any error."""
    now = timezone.now()
    edge_counts = Counter(source_id for source_id, _ in rows)

    edges = [
        WhiskyRelated(
            whisky_id=source_id,
            related_whisky_id=entry.whisky_id,
            score=entry.score,
            created_at=now,
            updated_at=now,
        )
        for source_id, entry in rows
    ]
    states = [
        WhiskyRelatedState(
            whisky_id=core.id,
            computed_at=now,
            edge_count=edge_counts.get(core.id, 0),
            profile=profile.name,
        )
        for core in cores
    ]
    batch_size = INSERT_BATCH_SIZE.get(dialect, DEFAULT_INSERT_BATCH_SIZE)

    with transaction.atomic(using=using):
        WhiskyRelated.objects.using(using).all().delete()
        WhiskyRelatedState.objects.using(using).all().delete()
        WhiskyRelated.objects.using(using).bulk_create(edges, batch_size=batch_size)
        WhiskyRelatedState.objects.using(using).bulk_create(states, batch_size=batch_size)


def rebuild_all_related_batch(
    top_limit: Optional[int] = None,
    dry_run: bool = False,
    using: str = DEFAULT_DB_ALIAS,
) -> BatchRebuildResult:
    """
    Recompute the related table for the entire catalog.

    Args:
        top_limit: Edges kept per whisky (default 20, clamped to >= 1)
        dry_run: Compute and report without writing
        using: Database alias

    Returns:
        BatchRebuildResult with the dialect and counts
    """
    started = time.monotonic()
    dialect = connections[using].vendor

    cores = load_whisky_cores(using)
    rows = build_related_rows(cores, BATCH_PROFILE, top_limit)
    logger.info(
        f"Computed {len(rows)} relations for {len(cores)} whiskies ({dialect})"
    )

    if not dry_run:
        write_all_related(rows, cores, dialect, BATCH_PROFILE, using)

    return BatchRebuildResult(
        dialect=dialect,
        relation_count=len(rows),
        whisky_count=len(cores),
        dry_run=dry_run,
        duration_seconds=time.monotonic() - started,
    )
