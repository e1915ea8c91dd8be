import pytest

from blobdetect.center import Center
from blobdetect.clustering import (
    cluster_levels,
    fold_level,
    fuse_cluster,
    fuse_clusters,
    insert_by_radius,
    matches,
    median_member,
)


def _c(x, y, r=5.0, conf=1.0):
    return Center(location=(float(x), float(y)), radius=float(r), confidence=float(conf))


def test_candidate_joins_first_cluster_not_a_new_one():
    levels = [
        [_c(0, 0), _c(100, 0)],
        [_c(2, 0)],
    ]
    clusters = cluster_levels(levels, min_dist_between_objects=1.0)
    assert len(clusters) == 2
    assert [c.location for c in clusters[0]] == [(0.0, 0.0), (2.0, 0.0)]
    assert len(clusters[1]) == 1


def test_first_match_wins_over_closest_match():
    clusters = [[_c(0, 0, r=1)], [_c(6, 0, r=1)]]
    fold_level(clusters, [_c(5, 0, r=1)], min_dist_between_objects=10.0)
    assert len(clusters[0]) == 2
    assert len(clusters[1]) == 1


def test_seeds_are_not_matched_within_their_own_level():
    clusters = cluster_levels([[_c(0, 0), _c(1, 0)]], min_dist_between_objects=10.0)
    assert len(clusters) == 2
    # from the next level on both seeds are candidates; the first one wins
    fold_level(clusters, [_c(0.5, 0)], min_dist_between_objects=10.0)
    assert [len(c) for c in clusters] == [2, 1]


class TestMatchCriteria:
    def test_far_candidate_with_small_radii_is_new(self):
        assert not matches([_c(0, 0, r=2)], _c(20, 0, r=2), min_dist_between_objects=5.0)

    def test_cluster_radius_alone_makes_a_match(self):
        assert matches([_c(0, 0, r=25)], _c(20, 0, r=2), min_dist_between_objects=5.0)

    def test_candidate_radius_alone_makes_a_match(self):
        assert matches([_c(0, 0, r=2)], _c(20, 0, r=25), min_dist_between_objects=5.0)

    def test_distance_equal_to_threshold_is_not_a_match(self):
        assert not matches([_c(0, 0, r=1)], _c(5, 0, r=1), min_dist_between_objects=5.0)

    def test_uses_the_median_member(self):
        cluster = [_c(0, 0, r=1), _c(50, 0, r=2), _c(200, 0, r=3)]
        assert median_member(cluster).location == (50.0, 0.0)
        assert matches(cluster, _c(52, 0, r=1), min_dist_between_objects=5.0)
        assert not matches(cluster, _c(2, 0, r=1), min_dist_between_objects=5.0)


def test_insert_keeps_radius_order():
    cluster = [_c(0, 0, r=5)]
    for r in (3, 4, 6, 1):
        insert_by_radius(cluster, _c(0, 0, r=r))
    assert [c.radius for c in cluster] == [1.0, 3.0, 4.0, 5.0, 6.0]


def test_size_comes_from_sorted_median_across_levels():
    levels = [[_c(0, 0, r=r)] for r in (5, 3, 4, 6, 1)]
    clusters = cluster_levels(levels, min_dist_between_objects=10.0)
    assert len(clusters) == 1
    assert [c.radius for c in clusters[0]] == [1.0, 3.0, 4.0, 5.0, 6.0]
    (obj,) = fuse_clusters(clusters, min_repeatability=1)
    assert obj.size == pytest.approx(8.0)


def test_insert_equal_radius_goes_after_existing():
    first = _c(0, 0, r=3)
    second = _c(1, 1, r=3)
    cluster = [first]
    insert_by_radius(cluster, second)
    assert cluster == [first, second]


class TestFusion:
    def test_weighted_location(self):
        obj = fuse_cluster([_c(0, 0, conf=1), _c(10, 0, conf=3)])
        assert obj.location == pytest.approx((7.5, 0.0))
        assert obj.response == pytest.approx(4.0)
        assert obj.repeatability == 2

    def test_size_is_diameter_of_median_member(self):
        cluster = [_c(0, 0, r=2), _c(0, 0, r=4), _c(0, 0, r=10)]
        assert fuse_cluster(cluster).size == pytest.approx(8.0)
        # even count: index n // 2 is the upper middle element
        assert fuse_cluster(cluster[:2]).size == pytest.approx(8.0)

    def test_all_zero_confidence_falls_back_to_mean(self):
        obj = fuse_cluster([_c(0, 0, conf=0), _c(4, 2, conf=0)])
        assert obj.location == pytest.approx((2.0, 1.0))

    def test_repeatability_gate(self):
        two = [_c(0, 0), _c(0, 0)]
        three = [_c(50, 0), _c(50, 0), _c(50, 0)]
        objects = fuse_clusters([two, three], min_repeatability=3)
        assert len(objects) == 1
        assert objects[0].location == pytest.approx((50.0, 0.0))
        assert fuse_clusters([two], min_repeatability=3) == []


def test_end_to_end_fold_over_three_levels():
    levels = [
        [_c(10, 10, r=4), _c(80, 80, r=6)],
        [_c(11, 10, r=5), _c(200, 200, r=3)],
        [_c(10, 11, r=6), _c(81, 80, r=7)],
    ]
    objects = fuse_clusters(cluster_levels(levels, 5.0), min_repeatability=2)
    assert len(objects) == 2
    first, second = objects
    assert first.repeatability == 3
    assert first.location == pytest.approx((31 / 3, 31 / 3))
    assert first.size == pytest.approx(10.0)
    assert second.repeatability == 2
    assert second.location == pytest.approx((80.5, 80.0))
    assert second.size == pytest.approx(14.0)
