"""
Tests for related whisky scoring, gating and ranking.

Pure functions over WhiskyCore; no database access.
"""

import pytest

from catalog.services.related_scoring import (
    BATCH_PROFILE,
    ONLINE_PROFILE,
    CandidateIndex,
    ScoringProfile,
    WhiskyCore,
    clamp_top_limit,
    could_score,
    normalize_text,
    profile_dimensions,
    rank_candidates,
    score_whisky_pair,
)


def core(whisky_id, name=None, **attrs):
    return WhiskyCore(id=whisky_id, name=name or whisky_id, **attrs)


class TestNormalizeText:
    """Tests for text attribute normalization."""

    def test_trims_and_lowercases(self):
        assert normalize_text("  Single Malt ") == "single malt"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_values_become_none(self, value):
        assert normalize_text(value) is None


class TestOnlineScoring:
    """Tests for score_whisky_pair with the online profile."""

    def test_all_dimensions_shared(self):
        source = core("a", bottling_type="DB", distiller_id="d1", country_id="GB",
                      region="Speyside", type="Single Malt")
        candidate = core("b", bottling_type="DB", distiller_id="d1", country_id="GB",
                         region="Speyside", type="Single Malt")

        assert score_whisky_pair(source, candidate) == 4 + 3 + 2 + 1

    def test_distillery_bottling_with_type_and_country(self):
        source = core("a", bottling_type="DB", distiller_id="d1", country_id="GB", type="Single Malt")
        candidate = core("b", bottling_type="DB", distiller_id="d1", country_id="GB", type="Single Malt")

        assert score_whisky_pair(source, candidate) == 9

    def test_pure_type_match_is_symmetric(self):
        a = core("a", type="Bourbon")
        b = core("b", type="bourbon")

        assert score_whisky_pair(a, b) == 4
        assert score_whisky_pair(b, a) == 4

    def test_type_and_region_compare_case_insensitively(self):
        source = core("a", type="Single Malt", region="Islay")
        candidate = core("b", type=" single malt", region="ISLAY ")

        assert score_whisky_pair(source, candidate) == 4 + 1

    def test_nothing_shared_scores_zero(self):
        source = core("a", type="Bourbon", country_id="US")
        candidate = core("b", type="Single Malt", country_id="GB")

        assert score_whisky_pair(source, candidate) == 0

    def test_empty_text_never_matches(self):
        source = core("a", type="", region="")
        candidate = core("b", type="", region="")

        assert score_whisky_pair(source, candidate) == 0

    def test_independent_bottling_uses_bottler(self):
        source = core("a", bottling_type="IB", distiller_id="d1", bottler_id="b1")
        candidate = core("b", bottling_type="IB", distiller_id="d2", bottler_id="b1")

        assert score_whisky_pair(source, candidate) == 3

    def test_independent_bottling_ignores_shared_distiller(self):
        source = core("a", bottling_type="IB", distiller_id="d1", bottler_id="b1")
        candidate = core("b", bottling_type="DB", distiller_id="d1")

        assert score_whisky_pair(source, candidate) == 0

    def test_unknown_bottling_type_gets_no_producer_points(self):
        source = core("a", distiller_id="d1", bottler_id="b1")
        candidate = core("b", distiller_id="d1", bottler_id="b1")

        assert score_whisky_pair(source, candidate) == 0

    def test_producer_bonus_follows_source_bottling_type_only(self):
        """Relatedness is directed: the producer bonus is keyed on the source."""
        distillery_bottling = core("a", bottling_type="DB", distiller_id="d1")
        independent_bottling = core("b", bottling_type="IB", distiller_id="d1", bottler_id="b1")

        assert score_whisky_pair(distillery_bottling, independent_bottling) == 3
        assert score_whisky_pair(independent_bottling, distillery_bottling) == 0


class TestBatchScoring:
    """Tests for score_whisky_pair with the batch profile."""

    def test_type_and_country_carry_no_weight(self):
        source = core("a", type="Single Malt", country_id="GB")
        candidate = core("b", type="Single Malt", country_id="GB")

        assert score_whisky_pair(source, candidate, BATCH_PROFILE) == 0

    def test_producer_and_region_weights(self):
        source = core("a", bottling_type="DB", distiller_id="d1", region="Speyside")
        candidate = core("b", bottling_type="DB", distiller_id="d1", region="speyside")

        assert score_whisky_pair(source, candidate, BATCH_PROFILE) == 4 + 2


class TestProfileDimensions:
    """Tests for the shared gating definition."""

    def test_online_dimensions_for_distillery_bottling(self):
        source = core("a", bottling_type="DB", distiller_id="d1", bottler_id="b1",
                      country_id="GB", region="Speyside", type="Single Malt")

        dimensions = profile_dimensions(source, ONLINE_PROFILE)

        assert dimensions == [
            ("type", "single malt", 4),
            ("distiller_id", "d1", 3),
            ("country_id", "GB", 2),
            ("region", "speyside", 1),
        ]

    def test_zero_weights_are_dropped(self):
        source = core("a", bottling_type="IB", bottler_id="b1", country_id="GB",
                      type="Single Malt")

        dimensions = profile_dimensions(source, BATCH_PROFILE)

        assert dimensions == [("bottler_id", "b1", 4)]

    def test_could_score_mirrors_scorer(self):
        source = core("a", bottling_type="DB", distiller_id="d1")
        same_distiller = core("b", distiller_id="d1")
        same_bottler_only = core("c", bottler_id="d1")

        assert could_score(source, same_distiller) is True
        assert could_score(source, same_bottler_only) is False
        assert could_score(source, source) is False

    @pytest.mark.parametrize("profile", [ONLINE_PROFILE, BATCH_PROFILE])
    def test_could_score_agrees_with_positive_score(self, profile):
        cores = [
            core("a", bottling_type="DB", distiller_id="d1", country_id="GB", type="Single Malt"),
            core("b", bottling_type="IB", distiller_id="d1", bottler_id="b1", region="Islay"),
            core("c", bottling_type="IB", bottler_id="b1", country_id="GB"),
            core("d", type="single malt", region="islay"),
            core("e"),
        ]

        for source in cores:
            for candidate in cores:
                if candidate.id == source.id:
                    continue
                expected = score_whisky_pair(source, candidate, profile) > 0
                assert could_score(source, candidate, profile) is expected


class TestRankCandidates:
    """Tests for thresholding, ordering and truncation."""

    def test_excludes_source_and_zero_scores(self):
        source = core("a", type="Single Malt")
        candidates = [
            source,
            core("b", type="Single Malt"),
            core("c", type="Bourbon"),
        ]

        ranked = rank_candidates(source, candidates)

        assert [entry.whisky_id for entry in ranked] == ["b"]
        assert ranked[0].score == 4

    def test_orders_by_score_then_name(self):
        source = core("a", type="Single Malt", country_id="GB")
        candidates = [
            core("1", "bunnahabhain 12", type="Single Malt"),
            core("2", "Ardbeg 10", type="Single Malt"),
            core("3", "Zuidam", type="Single Malt", country_id="GB"),
        ]

        ranked = rank_candidates(source, candidates)

        assert [entry.name for entry in ranked] == ["Zuidam", "Ardbeg 10", "bunnahabhain 12"]
        assert [entry.score for entry in ranked] == [6, 4, 4]

    def test_top_limit_truncates(self):
        source = core("a", type="Single Malt")
        candidates = [core(f"w{i:02d}", type="Single Malt") for i in range(30)]

        ranked = rank_candidates(source, candidates, ONLINE_PROFILE, top_limit=5)

        assert len(ranked) == 5
        assert [entry.whisky_id for entry in ranked] == ["w00", "w01", "w02", "w03", "w04"]

    def test_default_top_limit_is_twenty(self):
        source = core("a", type="Single Malt")
        candidates = [core(f"w{i:02d}", type="Single Malt") for i in range(25)]

        assert len(rank_candidates(source, candidates)) == 20

    def test_batch_threshold_and_id_tie_break(self):
        source = core("a", bottling_type="DB", distiller_id="d1", region="Islay")
        candidates = [
            core("c", "Alpha", region="Islay"),
            core("b", "Zeta", region="Islay"),
            core("d", "Mid", distiller_id="d1", region="Islay"),
            core("e", "Type only", type="Single Malt"),
        ]

        ranked = rank_candidates(source, candidates, BATCH_PROFILE)

        assert [(entry.whisky_id, entry.score) for entry in ranked] == [
            ("d", 6),
            ("b", 2),
            ("c", 2),
        ]

    def test_min_score_below_one_still_drops_zero(self):
        profile = ScoringProfile("loose", 1, 0, 0, 0, min_score=0)
        source = core("a", type="Single Malt")
        candidates = [core("b", type="Bourbon")]

        assert rank_candidates(source, candidates, profile) == []

    @pytest.mark.parametrize("requested,expected", [(None, 20), (0, 1), (-5, 1), (7, 7)])
    def test_clamp_top_limit(self, requested, expected):
        assert clamp_top_limit(requested) == expected


class TestCandidateIndex:
    """Tests for the in-memory bucket index."""

    def test_candidates_follow_profile_gating(self):
        source = core("a", bottling_type="DB", distiller_id="d1", bottler_id="b1")
        same_distiller = core("b", distiller_id="d1")
        same_bottler = core("c", bottler_id="b1")
        index = CandidateIndex([source, same_distiller, same_bottler])

        candidate_ids = [c.id for c in index.candidates_for(source, ONLINE_PROFILE)]

        assert candidate_ids == ["b"]

    def test_candidates_are_deduplicated_and_exclude_source(self):
        source = core("a", type="Single Malt", country_id="GB", region="Speyside")
        twin = core("b", type="single malt", country_id="GB", region="speyside")
        index = CandidateIndex([source, twin])

        candidate_ids = [c.id for c in index.candidates_for(source)]

        assert candidate_ids == ["b"]

    def test_buckets_normalize_text(self):
        index = CandidateIndex([core("a", region=" Islay"), core("b", region="ISLAY")])

        assert len(index) == 2
        assert [c.id for c in index.bucket("region", "islay")] == ["a", "b"]
        assert index.bucket("region", "speyside") == []

    def test_ranking_over_index_matches_full_scan(self):
        cores = [
            core("a", bottling_type="DB", distiller_id="d1", country_id="GB", type="Single Malt"),
            core("b", bottling_type="DB", distiller_id="d1", country_id="GB"),
            core("c", type="single malt"),
            core("d", country_id="JP"),
            core("e", bottling_type="IB", distiller_id="d1", bottler_id="b1"),
        ]
        index = CandidateIndex(cores)

        for source in cores:
            via_index = rank_candidates(source, index.candidates_for(source))
            via_scan = rank_candidates(source, cores)
            assert via_index == via_scan
