"""
Catalog writes that keep related whiskies fresh.

Every attribute-affecting write goes through one of these functions so the
related-whisky engine is told about it:

- create_whisky: create, then rebuild the new whisky's impact cluster
- save_whisky / update_whisky: snapshot attributes, save, rebuild the cluster
  of both the old and the new values (the admin saves through save_whisky)
- delete_whisky: delete, rebuild the former neighbours
- merge_producers: reassign all whiskies of one distiller/bottler to another,
  retire the source producer, rebuild around every reassigned whisky

Rebuilds run inline by default. With WHISKY_RELATED_ASYNC they are queued on
Celery once the surrounding transaction commits.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from catalog.models import Bottler, Distiller, ProducerKind, Whisky
from catalog.services.related_engine import (
    get_whisky_core,
    rebuild_related_for_impact_cluster,
    rebuild_related_for_many,
)
from catalog.services.related_scoring import CORE_FIELDS, WhiskyCore

logger = logging.getLogger(__name__)

PRODUCER_MODELS = {
    ProducerKind.DISTILLER: Distiller,
    ProducerKind.BOTTLER: Bottler,
}


class ProducerMergeError(ValueError):
    """Raised when a producer merge request is invalid."""


@dataclass
class MergeResult:
    """Outcome of a producer merge."""

    kind: str
    source_id: str
    target_id: str
    reassigned: int = 0
    rebuilt: int = 0


def _rebuild_async() -> bool:
    return getattr(settings, "WHISKY_RELATED_ASYNC", False)


def refresh_related_cluster(whisky_id, previous: Optional[WhiskyCore] = None) -> int:
    """Rebuild (or queue) the impact cluster of one mutated whisky."""
    whisky_id = str(whisky_id)

    if _rebuild_async():
        from catalog.tasks import rebuild_whisky_related_cluster

        snapshot = asdict(previous) if previous else None
        transaction.on_commit(
            lambda: rebuild_whisky_related_cluster.delay(whisky_id, snapshot)
        )
        return 0

    return rebuild_related_for_impact_cluster(whisky_id, previous=previous)


def refresh_related_many(
    whisky_ids: Iterable,
    previous: Optional[Dict[str, WhiskyCore]] = None,
) -> int:
    """Rebuild (or queue) the union of impact clusters of several whiskies."""
    ids = [str(pk) for pk in whisky_ids]
    if not ids:
        return 0

    if _rebuild_async():
        from catalog.tasks import rebuild_whisky_related_many

        snapshots = {key: asdict(core) for key, core in (previous or {}).items()}
        transaction.on_commit(
            lambda: rebuild_whisky_related_many.delay(ids, snapshots)
        )
        return 0

    return rebuild_related_for_many(ids, previous=previous)


def create_whisky(**fields) -> Whisky:
    """Create a whisky and rebuild the related sets it affects."""
    with transaction.atomic():
        whisky = Whisky.objects.create(**fields)

    rebuilt = refresh_related_cluster(whisky.id)
    logger.info(f"Created whisky {whisky.id} ({whisky.name}), rebuilt {rebuilt} related sets")
    return whisky


def save_whisky(whisky: Whisky) -> Whisky:
    """
    Save a new or edited whisky and rebuild around both old and new values.

    The pre-save attributes are read from the database, so entities that
    were related through a value the whisky no longer has are refreshed too.
    """
    previous = get_whisky_core(whisky.pk) if whisky.pk else None

    with transaction.atomic():
        whisky.save()

    if previous is not None and previous == WhiskyCore.from_whisky(whisky):
        logger.debug(f"Whisky {whisky.id} saved without relatedness changes")
        return whisky

    rebuilt = refresh_related_cluster(whisky.id, previous=previous)
    logger.info(f"Saved whisky {whisky.id}, rebuilt {rebuilt} related sets")
    return whisky


def update_whisky(whisky: Whisky, **changes) -> Whisky:
    """Apply attribute changes and rebuild around both old and new values."""
    for field, value in changes.items():
        setattr(whisky, field, value)
    return save_whisky(whisky)


def delete_whisky(whisky: Whisky) -> int:
    """
    Delete a whisky and rebuild the related sets of its former neighbours.

    Returns:
        Number of related sets rebuilt (0 when queued)
    """
    previous = WhiskyCore.from_whisky(whisky)
    whisky_id = whisky.pk

    with transaction.atomic():
        whisky.delete()

    rebuilt = refresh_related_cluster(whisky_id, previous=previous)
    logger.info(f"Deleted whisky {whisky_id}, rebuilt {rebuilt} related sets")
    return rebuilt


def merge_producers(kind: str, source_id, target_id) -> MergeResult:
    """
    Merge one distiller (or bottler) into another.

    Reassigns every whisky of the source producer to the target, marks the
    source inactive and merged into the target, then rebuilds the related
    sets around each reassigned whisky using its pre-merge attributes.

    Args:
        kind: "distiller" or "bottler"
        source_id: Producer being merged away
        target_id: Producer that absorbs the source

    Returns:
        MergeResult with reassignment and rebuild counts

    Raises:
        ProducerMergeError: Unknown kind, same producer, missing or inactive producer
    """
    if kind not in ProducerKind.values:
        raise ProducerMergeError(f"Unknown producer kind: {kind}")
    if str(source_id) == str(target_id):
        raise ProducerMergeError("Source and target producers must differ")

    model = PRODUCER_MODELS[ProducerKind(kind)]
    fk = f"{kind}_id"

    with transaction.atomic():
        producers = {
            str(p.pk): p
            for p in model.objects.select_for_update().filter(pk__in=[source_id, target_id])
        }
        source = producers.get(str(source_id))
        target = producers.get(str(target_id))

        if source is None or target is None:
            raise ProducerMergeError(f"Source or target {kind} not found")
        if not source.is_active or source.merged_into_id:
            raise ProducerMergeError(f"Source {kind} already merged/inactive")
        if not target.is_active or target.merged_into_id:
            raise ProducerMergeError(f"Target {kind} is merged/inactive")

        affected = Whisky.objects.filter(**{fk: source.pk})
        previous = {
            str(row["id"]): WhiskyCore.from_row(row)
            for row in affected.values(*CORE_FIELDS)
        }
        reassigned = affected.update(**{fk: target.pk, "updated_at": timezone.now()})

        source.is_active = False
        source.merged_into = target
        source.save(update_fields=["is_active", "merged_into", "updated_at"])

    rebuilt = refresh_related_many(list(previous), previous=previous)

    logger.info(
        f"Merged {kind} {source.name} into {target.name}: "
        f"{reassigned} whiskies reassigned, {rebuilt} related sets rebuilt"
    )
    return MergeResult(
        kind=kind,
        source_id=str(source.pk),
        target_id=str(target.pk),
        reassigned=reassigned,
        rebuilt=rebuilt,
    )
