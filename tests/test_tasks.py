"""
Tests for the related-whisky Celery tasks.

Tasks run eagerly in tests (CELERY_TASK_ALWAYS_EAGER).
"""

from dataclasses import asdict
from unittest.mock import patch

import pytest

from catalog.models import WhiskyRelated, WhiskyRelatedState
from catalog.services.related_scoring import WhiskyCore
from catalog.tasks import (
    rebuild_whisky_related,
    rebuild_whisky_related_all,
    rebuild_whisky_related_cluster,
    rebuild_whisky_related_many,
)


@pytest.mark.django_db
class TestRebuildTasks:
    """Tests for the rebuild task wrappers."""

    def test_rebuild_one(self, make_whisky, scotland):
        a = make_whisky("Aberlour 12", country=scotland)
        make_whisky("Balvenie 12", country=scotland)

        result = rebuild_whisky_related.delay(str(a.id)).get()

        assert result == {"whisky_id": str(a.id), "edges": 1}

    def test_rebuild_cluster_with_serialized_snapshot(self, make_whisky, glenfarclas, macallan):
        a = make_whisky("Glenfarclas 15", bottling_type="DB", distiller=glenfarclas)
        b = make_whisky("Glenfarclas 21", bottling_type="DB", distiller=glenfarclas)
        WhiskyRelated.objects.create(whisky=b, related_whisky=a, score=3)
        snapshot = asdict(WhiskyCore.from_whisky(a))

        a.distiller = macallan
        a.save()
        result = rebuild_whisky_related_cluster.delay(str(a.id), snapshot).get()

        assert result == {"whisky_id": str(a.id), "rebuilt": 2}
        assert not WhiskyRelated.objects.filter(whisky=b).exists()

    def test_rebuild_many(self, make_whisky, scotland, japan):
        a = make_whisky("Aberlour 12", country=scotland)
        make_whisky("Balvenie 12", country=scotland)
        y = make_whisky("Yamazaki 12", country=japan)

        result = rebuild_whisky_related_many.delay([str(a.id), str(y.id)], {}).get()

        assert result == {"seeds": 2, "rebuilt": 3}

    def test_rebuild_all(self, make_whisky, scotland):
        make_whisky("Aberlour 12", country=scotland)
        make_whisky("Balvenie 12", country=scotland)

        result = rebuild_whisky_related_all.delay().get()

        assert result == {"rebuilt": 2}
        assert WhiskyRelatedState.objects.count() == 2

    def test_failure_is_reported_and_reraised(self, make_whisky):
        whisky = make_whisky("Aberlour 12")

        with patch("catalog.tasks.rebuild_related_for_one", side_effect=RuntimeError("boom")):
            with patch("catalog.tasks.capture_rebuild_error") as capture:
                with pytest.raises(RuntimeError, match="boom"):
                    rebuild_whisky_related(str(whisky.id))

        capture.assert_called_once()
        assert capture.call_args.kwargs == {"operation": "one", "whisky_id": str(whisky.id)}
