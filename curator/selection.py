"""
Album photo selection.

Two modes over the same pre-processed pool (excluded photos dropped,
bursts collapsed to their best frame, faces matched against the target
subjects):

- Group-balanced: greedy pick that maximizes subject coverage and quality
  while penalizing uneven per-subject counts
- Growth: one photo per equal time bucket across a single subject's span,
  for "watch them grow" albums

Photos that match no target subject never appear in the output; callers
that want them can find no-face photos with
curator.clustering.unrecognized_photos.
"""

import logging
from typing import Sequence

import numpy as np

from curator.burst import deduplicate_burst_photos
from curator.config import BALANCE_PENALTY_K, CLUSTER_THRESHOLD
from curator.descriptors import euclidean_distance
from curator.matching import DistanceFn, PhotoMatch, match_photo
from curator.models import Cluster, Photo
from curator.scoring import SelectionWeights, quality_score

logger = logging.getLogger(__name__)


def _prepare_pool(
    pool: Sequence[Photo],
    target_clusters: Sequence[Cluster],
    distance: DistanceFn,
    default_threshold: float,
) -> list[PhotoMatch]:
    """Matched, deduplicated, non-excluded photos in chronological order."""
    included = [p for p in pool if not p.excluded]
    deduped = deduplicate_burst_photos(
        included, target_clusters, distance=distance, default_threshold=default_threshold
    )

    matches = [match_photo(p, target_clusters, distance, default_threshold) for p in deduped]
    matched = [m for m in matches if m.matched]

    logger.debug(
        f"Selection pool: {len(pool)} photos, {len(included)} included, "
        f"{len(deduped)} after burst dedup, {len(matched)} matched"
    )
    return matched


def select_group_balanced(
    pool: Sequence[Photo],
    target_clusters: Sequence[Cluster],
    count: int,
    weights: SelectionWeights | None = None,
    distance: DistanceFn = euclidean_distance,
    default_threshold: float = CLUSTER_THRESHOLD,
) -> list[Photo]:
    """
    Select up to count photos balanced across the target subjects.

    Each greedy round scores every remaining candidate as

        subjects + quality - K * std(per-subject counts if picked)

    and keeps the highest (earliest on ties).

    Args:
        pool: Candidate photos
        target_clusters: Subjects the album is about
        count: Maximum number of photos to return
        weights: Quality weights (defaults if None)
        distance: Descriptor distance function

    Returns:
        Selected photos in chronological order
    """
    if count <= 0 or not pool or not target_clusters:
        return []

    candidates = _prepare_pool(pool, target_clusters, distance, default_threshold)
    if len(candidates) <= count:
        return [m.photo for m in candidates]

    if weights is None:
        weights = SelectionWeights()

    subject_order = list(dict.fromkeys(c.id for c in target_clusters))
    counts = {sid: 0 for sid in subject_order}

    # Quality doesn't depend on what was already picked
    qualities = [
        quality_score(m.photo, m.matched_faces, len(m.subject_ids), weights)
        for m in candidates
    ]
    remaining = list(range(len(candidates)))

    selected: list[Photo] = []
    for _ in range(count):
        best_pos = None
        best_score = float("-inf")
        for pos, idx in enumerate(remaining):
            match = candidates[idx]
            trial = [counts[sid] + (1 if sid in match.subject_ids else 0) for sid in subject_order]
            penalty = BALANCE_PENALTY_K * float(np.std(trial))
            score = len(match.subject_ids) + qualities[idx] - penalty
            if score > best_score:
                best_pos = pos
                best_score = score

        winner = candidates[remaining.pop(best_pos)]
        for sid in winner.subject_ids:
            counts[sid] += 1
        selected.append(winner.photo)

    selected.sort(key=lambda p: p.timestamp)

    logger.info(
        f"Group-balanced selection: {len(selected)} of {len(candidates)} candidates, "
        f"per-subject counts {counts}"
    )
    return selected


def select_growth(
    pool: Sequence[Photo],
    target_cluster: Cluster,
    count: int,
    distance: DistanceFn = euclidean_distance,
    default_threshold: float = CLUSTER_THRESHOLD,
) -> list[Photo]:
    """
    Spread up to count photos of one subject evenly over time.

    The span from the first to the last matched photo is cut into count
    equal buckets (the last one closed on the right); each non-empty bucket
    contributes the photo nearest its midpoint, the earlier one on ties.

    Returns:
        Selected photos in chronological order
    """
    if count <= 0 or not pool or target_cluster is None:
        return []

    matched = [m.photo for m in _prepare_pool(pool, [target_cluster], distance, default_threshold)]
    if not matched:
        return []

    first = matched[0].timestamp
    last = matched[-1].timestamp
    width = (last - first) / count

    selected = []
    for i in range(count):
        start = first + i * width
        is_last = i == count - 1
        end = last if is_last else first + (i + 1) * width
        midpoint = (start + end) / 2

        best = None
        best_gap = float("inf")
        for photo in matched:
            in_bucket = start <= photo.timestamp <= end if is_last else start <= photo.timestamp < end
            if not in_bucket:
                continue
            gap = abs(photo.timestamp - midpoint)
            if gap < best_gap:
                best = photo
                best_gap = gap

        if best is not None:
            selected.append(best)

    logger.info(f"Growth selection: {len(selected)} of {len(matched)} matched photos over {count} buckets")
    return selected
