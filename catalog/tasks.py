"""
Celery tasks for the related-whisky engine.

Thin wrappers around the rebuild entry points so they can run on the
"related" queue instead of inside the request that changed the catalog:
- rebuild_whisky_related: one whisky
- rebuild_whisky_related_cluster: one whisky and its impact cluster
- rebuild_whisky_related_many: union of the clusters of several seeds
- rebuild_whisky_related_all: every whisky (nightly via Celery Beat)

Snapshots of pre-mutation attributes travel as plain dicts (JSON serializer).
Failures are logged, reported to Sentry and re-raised so Celery marks the
task failed; rebuilds are idempotent, so re-running a failed task is safe.
"""

import logging
from typing import Any, Dict, List, Optional

from celery import shared_task

from catalog.monitoring import capture_rebuild_error
from catalog.services.related_engine import (
    rebuild_related_for_all,
    rebuild_related_for_impact_cluster,
    rebuild_related_for_many,
    rebuild_related_for_one,
)
from catalog.services.related_scoring import WhiskyCore

logger = logging.getLogger(__name__)


def _snapshot(data: Optional[Dict[str, Any]]) -> Optional[WhiskyCore]:
    if not data:
        return None
    return WhiskyCore(**data)


@shared_task(name="catalog.tasks.rebuild_whisky_related")
def rebuild_whisky_related(whisky_id: str, top_limit: Optional[int] = None) -> Dict[str, Any]:
    """Rebuild the related set of a single whisky."""
    try:
        edges = rebuild_related_for_one(whisky_id, top_limit=top_limit)
    except Exception as e:
        logger.exception(f"Related rebuild failed for whisky {whisky_id}")
        capture_rebuild_error(e, operation="one", whisky_id=whisky_id)
        raise

    return {"whisky_id": whisky_id, "edges": edges}


@shared_task(name="catalog.tasks.rebuild_whisky_related_cluster")
def rebuild_whisky_related_cluster(
    whisky_id: str,
    previous: Optional[Dict[str, Any]] = None,
    top_limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Rebuild a whisky and every whisky one hop away from it."""
    try:
        rebuilt = rebuild_related_for_impact_cluster(
            whisky_id,
            previous=_snapshot(previous),
            top_limit=top_limit,
        )
    except Exception as e:
        logger.exception(f"Related cluster rebuild failed for whisky {whisky_id}")
        capture_rebuild_error(e, operation="cluster", whisky_id=whisky_id)
        raise

    return {"whisky_id": whisky_id, "rebuilt": rebuilt}


@shared_task(name="catalog.tasks.rebuild_whisky_related_many")
def rebuild_whisky_related_many(
    whisky_ids: List[str],
    previous: Optional[Dict[str, Dict[str, Any]]] = None,
    top_limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Rebuild the union of the impact clusters of several seeds."""
    snapshots = {key: _snapshot(value) for key, value in (previous or {}).items()}
    try:
        rebuilt = rebuild_related_for_many(whisky_ids, previous=snapshots, top_limit=top_limit)
    except Exception as e:
        logger.exception(f"Related rebuild failed for {len(whisky_ids)} seeds")
        capture_rebuild_error(e, operation="many", extra_context={"seeds": len(whisky_ids)})
        raise

    return {"seeds": len(whisky_ids), "rebuilt": rebuilt}


@shared_task(name="catalog.tasks.rebuild_whisky_related_all")
def rebuild_whisky_related_all(top_limit: Optional[int] = None) -> Dict[str, Any]:
    """Rebuild every whisky's related set."""
    logger.info("Starting full related rebuild...")
    try:
        rebuilt = rebuild_related_for_all(top_limit=top_limit)
    except Exception as e:
        logger.exception("Full related rebuild failed")
        capture_rebuild_error(e, operation="all")
        raise

    return {"rebuilt": rebuilt}
