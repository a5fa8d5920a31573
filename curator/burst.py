"""
Burst photo deduplication.

Cameras shoot bursts: several near-identical frames within a second or two.
Only the best frame of each burst should compete for the album.

A burst is a contiguous run in time: a new burst starts whenever the gap to
the previous photo is at least BURST_THRESHOLD_MS. Within a burst the
representative is chosen by how many target subjects it shows, then how many
faces it has, then how large those faces are.
"""

import logging
from typing import Sequence

from curator.config import (
    BURST_FACE_AREA_NORM,
    BURST_FACE_COUNT_WEIGHT,
    BURST_SUBJECT_WEIGHT,
    BURST_THRESHOLD_MS,
    CLUSTER_THRESHOLD,
)
from curator.descriptors import euclidean_distance
from curator.matching import DistanceFn, count_matched_subjects, total_face_area
from curator.models import Cluster, Photo

logger = logging.getLogger(__name__)


def group_burst_photos(
    photos: Sequence[Photo],
    threshold_ms: float = BURST_THRESHOLD_MS,
) -> list[list[Photo]]:
    """
    Split photos into bursts by timestamp gap.

    Args:
        photos: Photos in any order
        threshold_ms: Gap (inclusive) that starts a new burst

    Returns:
        Groups in chronological order, each chronological
    """
    if not photos:
        return []

    ordered = sorted(photos, key=lambda p: p.timestamp)

    groups = [[ordered[0]]]
    for prev, photo in zip(ordered, ordered[1:]):
        if photo.timestamp - prev.timestamp >= threshold_ms:
            groups.append([photo])
        else:
            groups[-1].append(photo)

    return groups


def burst_score(
    photo: Photo,
    target_clusters: Sequence[Cluster] = (),
    distance: DistanceFn = euclidean_distance,
    default_threshold: float = CLUSTER_THRESHOLD,
) -> float:
    """Weighted best-shot score: subjects, then face count, then face area."""
    subjects = count_matched_subjects(photo, target_clusters, distance, default_threshold)
    area = min(total_face_area(photo) / BURST_FACE_AREA_NORM, 1.0)
    return (
        subjects * BURST_SUBJECT_WEIGHT
        + len(photo.faces) * BURST_FACE_COUNT_WEIGHT
        + area
    )


def select_best_from_burst(
    group: Sequence[Photo],
    target_clusters: Sequence[Cluster] = (),
    distance: DistanceFn = euclidean_distance,
    default_threshold: float = CLUSTER_THRESHOLD,
) -> Photo:
    """
    Pick the representative frame of one burst.

    Equal scores keep the earlier photo.

    Raises:
        ValueError: If group is empty
    """
    if not group:
        raise ValueError("Cannot select from an empty burst")
    if len(group) == 1:
        return group[0]

    best = group[0]
    best_score = burst_score(best, target_clusters, distance, default_threshold)
    for photo in group[1:]:
        score = burst_score(photo, target_clusters, distance, default_threshold)
        if score > best_score:
            best = photo
            best_score = score
    return best


def deduplicate_burst_photos(
    photos: Sequence[Photo],
    target_clusters: Sequence[Cluster] = (),
    distance: DistanceFn = euclidean_distance,
    default_threshold: float = CLUSTER_THRESHOLD,
    threshold_ms: float = BURST_THRESHOLD_MS,
) -> list[Photo]:
    """Keep one photo per burst, in chronological order."""
    groups = group_burst_photos(photos, threshold_ms)
    kept = [
        select_best_from_burst(group, target_clusters, distance, default_threshold)
        for group in groups
    ]

    if len(kept) < len(photos):
        logger.debug(f"Burst dedup: {len(photos)} photos -> {len(kept)} ({len(groups)} bursts)")
    return kept
