"""
Services module for the Whisky Catalog.

Contains:
- related_scoring: Pure scoring, gating and ranking of related whiskies
- related_engine: Online rebuild of persisted related sets (one, cluster, many, all)
- related_batch: Full-catalog batch rebuild
- related_display: Read path for the whisky detail page
- catalog_mutations: Catalog writes that trigger related rebuilds
"""

from catalog.services.related_scoring import (
    BATCH_PROFILE,
    ONLINE_PROFILE,
    CandidateIndex,
    RankedCandidate,
    ScoringProfile,
    WhiskyCore,
    rank_candidates,
    score_whisky_pair,
)
from catalog.services.related_engine import (
    get_candidate_whiskies,
    get_whisky_core,
    rebuild_related_for_all,
    rebuild_related_for_impact_cluster,
    rebuild_related_for_many,
    rebuild_related_for_one,
)
from catalog.services.related_batch import (
    BatchRebuildResult,
    rebuild_all_related_batch,
)
from catalog.services.related_display import get_related_whiskies_for_display
from catalog.services.catalog_mutations import (
    MergeResult,
    ProducerMergeError,
    create_whisky,
    delete_whisky,
    merge_producers,
    save_whisky,
    update_whisky,
)

__all__ = [
    "BATCH_PROFILE",
    "ONLINE_PROFILE",
    "CandidateIndex",
    "RankedCandidate",
    "ScoringProfile",
    "WhiskyCore",
    "rank_candidates",
    "score_whisky_pair",
    "get_candidate_whiskies",
    "get_whisky_core",
    "rebuild_related_for_all",
    "rebuild_related_for_impact_cluster",
    "rebuild_related_for_many",
    "rebuild_related_for_one",
    "BatchRebuildResult",
    "rebuild_all_related_batch",
    "get_related_whiskies_for_display",
    "MergeResult",
    "ProducerMergeError",
    "create_whisky",
    "delete_whisky",
    "merge_producers",
    "save_whisky",
    "update_whisky",
]
