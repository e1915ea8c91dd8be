"""
Cross-level clustering of Centers.

Levels are folded in order. Each candidate joins the first existing cluster
(in creation order) whose representative it is close to; otherwise it seeds
a new cluster that becomes visible from the next level on. A cluster's
representative is its median member by radius, which keeps one or two
outlier detections at extreme thresholds from dragging it around.

This is an order-dependent heuristic, not an optimal assignment: feeding the
same levels in another order can give different clusters.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence

from .center import Center, DetectedObject

Cluster = List[Center]


def median_member(cluster: Sequence[Center]) -> Center:
    return cluster[len(cluster) // 2]


def matches(cluster: Sequence[Center], candidate: Center, min_dist_between_objects: float) -> bool:
    """True when ``candidate`` is too close to the cluster to count as a new object."""
    rep = median_member(cluster)
    dist = math.hypot(
        rep.location[0] - candidate.location[0],
        rep.location[1] - candidate.location[1],
    )
    return dist < min_dist_between_objects or dist < rep.radius or dist < candidate.radius


def insert_by_radius(cluster: Cluster, center: Center) -> None:
    """Append ``center`` and sift it towards the head until radii ascend again."""
    cluster.append(center)
    k = len(cluster) - 1
    while k > 0 and center.radius < cluster[k - 1].radius:
        cluster[k] = cluster[k - 1]
        k -= 1
    cluster[k] = center


def fold_level(clusters: List[Cluster], centers: Iterable[Center], min_dist_between_objects: float) -> List[Cluster]:
    """Merge one level's Centers into ``clusters`` in place and return it."""
    seeds: List[Cluster] = []
    for candidate in centers:
        for cluster in clusters:
            if matches(cluster, candidate, min_dist_between_objects):
                insert_by_radius(cluster, candidate)
                break
        else:
            seeds.append([candidate])
    clusters.extend(seeds)
    return clusters


def cluster_levels(levels: Iterable[Sequence[Center]], min_dist_between_objects: float) -> List[Cluster]:
    clusters: List[Cluster] = []
    for centers in levels:
        fold_level(clusters, centers, min_dist_between_objects)
    return clusters


def fuse_cluster(cluster: Sequence[Center]) -> DetectedObject:
    """Confidence-weighted location; size is the diameter of the median member."""
    normalizer = sum(c.confidence for c in cluster)
    if normalizer > 0.0:
        x = sum(c.confidence * c.location[0] for c in cluster) / normalizer
        y = sum(c.confidence * c.location[1] for c in cluster) / normalizer
    else:
        # every member was given zero confidence; fall back to the plain mean
        x = sum(c.location[0] for c in cluster) / len(cluster)
        y = sum(c.location[1] for c in cluster) / len(cluster)
    return DetectedObject(
        x=float(x),
        y=float(y),
        size=2.0 * float(median_member(cluster).radius),
        repeatability=len(cluster),
        response=float(normalizer),
    )


def fuse_clusters(clusters: Iterable[Sequence[Center]], min_repeatability: int) -> List[DetectedObject]:
    """Drop clusters seen at fewer than ``min_repeatability`` levels and fuse the rest."""
    return [fuse_cluster(cluster) for cluster in clusters if len(cluster) >= min_repeatability]
