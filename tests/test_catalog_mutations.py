"""
Tests for catalog writes that trigger related-whisky rebuilds.
"""

from unittest.mock import patch

import pytest

from catalog.models import Distiller, Whisky, WhiskyRelated
from catalog.services.catalog_mutations import (
    ProducerMergeError,
    create_whisky,
    delete_whisky,
    merge_producers,
    save_whisky,
    update_whisky,
)
from catalog.services.related_engine import has_computed_related, rebuild_related_for_all


def related_ids(whisky):
    return set(
        WhiskyRelated.objects.filter(whisky=whisky).values_list("related_whisky_id", flat=True)
    )


@pytest.mark.django_db
class TestCreateWhisky:
    """Tests for create_whisky."""

    def test_new_whisky_joins_neighbour_lists(self, make_whisky, scotland):
        existing = make_whisky("Aberlour 12", country=scotland)

        created = create_whisky(name="Balvenie 12", country=scotland)

        assert Whisky.objects.filter(pk=created.pk).exists()
        assert related_ids(created) == {existing.id}
        assert related_ids(existing) == {created.id}

    def test_async_mode_queues_task_after_commit(self, scotland, settings, django_capture_on_commit_callbacks):
        settings.WHISKY_RELATED_ASYNC = True

        with patch("catalog.tasks.rebuild_whisky_related_cluster.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                created = create_whisky(name="Balvenie 12", country=scotland)

        delay.assert_called_once_with(str(created.id), None)
        assert not has_computed_related(created.id)


@pytest.mark.django_db
class TestUpdateWhisky:
    """Tests for update_whisky."""

    def test_producer_change_refreshes_old_neighbours(self, make_whisky, glenfarclas, macallan):
        a = make_whisky("Glenfarclas 15", bottling_type="DB", distiller=glenfarclas)
        b = make_whisky("Glenfarclas 21", bottling_type="DB", distiller=glenfarclas)
        c = make_whisky("Macallan 12", bottling_type="DB", distiller=macallan)
        rebuild_related_for_all()
        assert related_ids(b) == {a.id}

        update_whisky(a, distiller=macallan)

        assert related_ids(b) == set()
        assert related_ids(a) == {c.id}
        assert related_ids(c) == {a.id}

    def test_non_relatedness_change_skips_rebuild(self, make_whisky, scotland):
        whisky = make_whisky("Aberlour 12", country=scotland)

        with patch("catalog.services.catalog_mutations.refresh_related_cluster") as refresh:
            update_whisky(whisky, image_url="https://cdn.example.com/aberlour.jpg")

        refresh.assert_not_called()
        whisky.refresh_from_db()
        assert whisky.image_url == "https://cdn.example.com/aberlour.jpg"

    def test_async_mode_sends_previous_snapshot(self, make_whisky, glenfarclas, macallan, settings,
                                                django_capture_on_commit_callbacks):
        settings.WHISKY_RELATED_ASYNC = True
        whisky = make_whisky("Glenfarclas 15", bottling_type="DB", distiller=glenfarclas)

        with patch("catalog.tasks.rebuild_whisky_related_cluster.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                update_whisky(whisky, distiller=macallan)

        whisky_id, snapshot = delay.call_args.args
        assert whisky_id == str(whisky.id)
        assert snapshot["distiller_id"] == str(glenfarclas.id)
        assert snapshot["bottling_type"] == "DB"


@pytest.mark.django_db
class TestSaveAndDeleteWhisky:
    """Tests for save_whisky and delete_whisky."""

    def test_save_new_whisky_joins_neighbour_lists(self, make_whisky, scotland):
        existing = make_whisky("Aberlour 12", country=scotland)

        created = save_whisky(Whisky(name="Balvenie 12", country=scotland))

        assert related_ids(existing) == {created.id}
        assert related_ids(created) == {existing.id}

    def test_save_edited_region_refreshes_old_neighbours(self, make_whisky):
        a = make_whisky("Bruichladdich Classic", region="Île d'Islay")
        b = make_whisky("Bunnahabhain 12", region="île d'islay")
        rebuild_related_for_all()
        assert related_ids(b) == {a.id}

        a.region = "Speyside"
        save_whisky(a)

        assert related_ids(b) == set()
        assert related_ids(a) == set()

    def test_delete_refreshes_former_neighbours(self, make_whisky, scotland):
        a = make_whisky("Aberlour 12", country=scotland)
        b = make_whisky("Balvenie 12", country=scotland)
        c = make_whisky("Cragganmore 12", country=scotland)
        rebuild_related_for_all()
        a_id = a.id

        rebuilt = delete_whisky(a)

        assert rebuilt == 3
        assert not Whisky.objects.filter(pk=a_id).exists()
        assert related_ids(b) == {c.id}
        assert related_ids(c) == {b.id}
        assert not has_computed_related(a_id)

    def test_delete_in_async_mode_queues_snapshot(self, make_whisky, glenfarclas, settings,
                                                  django_capture_on_commit_callbacks):
        settings.WHISKY_RELATED_ASYNC = True
        whisky = make_whisky("Glenfarclas 15", bottling_type="DB", distiller=glenfarclas)
        whisky_id = str(whisky.id)

        with patch("catalog.tasks.rebuild_whisky_related_cluster.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                assert delete_whisky(whisky) == 0

        queued_id, snapshot = delay.call_args.args
        assert queued_id == whisky_id
        assert snapshot["distiller_id"] == str(glenfarclas.id)


@pytest.mark.django_db
class TestMergeProducers:
    """Tests for merge_producers."""

    def test_merge_reassigns_and_rebuilds(self, make_whisky, glenfarclas, macallan):
        s1 = make_whisky("Glenfarclas 15", bottling_type="DB", distiller=glenfarclas)
        s2 = make_whisky("Glenfarclas 21", bottling_type="DB", distiller=glenfarclas)
        e = make_whisky("Macallan 12", bottling_type="DB", distiller=macallan)
        rebuild_related_for_all()
        assert related_ids(e) == set()

        result = merge_producers("distiller", glenfarclas.id, macallan.id)

        assert result.reassigned == 2
        assert result.rebuilt == 3
        assert Whisky.objects.filter(distiller=macallan).count() == 3

        glenfarclas.refresh_from_db()
        assert glenfarclas.is_active is False
        assert glenfarclas.merged_into_id == macallan.id

        assert related_ids(e) == {s1.id, s2.id}
        assert related_ids(s1) == {s2.id, e.id}
        assert related_ids(s2) == {s1.id, e.id}

    def test_merge_bottlers(self, make_whisky, signatory):
        from catalog.models import Bottler

        target = Bottler.objects.create(name="Gordon & MacPhail")
        moved = make_whisky("Signatory Ledaig", bottling_type="IB", bottler=signatory)
        kept = make_whisky("G&M Mortlach", bottling_type="IB", bottler=target)

        result = merge_producers("bottler", signatory.id, target.id)

        assert result.kind == "bottler"
        assert result.reassigned == 1
        assert related_ids(moved) == {kept.id}

    def test_same_source_and_target(self, glenfarclas):
        with pytest.raises(ProducerMergeError, match="must differ"):
            merge_producers("distiller", glenfarclas.id, glenfarclas.id)

    def test_unknown_kind(self, glenfarclas, macallan):
        with pytest.raises(ProducerMergeError, match="Unknown producer kind"):
            merge_producers("cooper", glenfarclas.id, macallan.id)

    def test_missing_producer(self, glenfarclas, signatory):
        with pytest.raises(ProducerMergeError, match="not found"):
            merge_producers("distiller", glenfarclas.id, signatory.id)

    def test_already_merged_source(self, glenfarclas, macallan, scotland):
        other = Distiller.objects.create(name="Mortlach", country=scotland)
        merge_producers("distiller", glenfarclas.id, macallan.id)

        with pytest.raises(ProducerMergeError, match="Source distiller already merged"):
            merge_producers("distiller", glenfarclas.id, other.id)

    def test_inactive_target(self, glenfarclas, macallan):
        macallan.is_active = False
        macallan.save()

        with pytest.raises(ProducerMergeError, match="Target distiller is merged/inactive"):
            merge_producers("distiller", glenfarclas.id, macallan.id)

        glenfarclas.refresh_from_db()
        assert glenfarclas.is_active is True
