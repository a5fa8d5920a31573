"""
Face-to-subject matching shared by burst detection and selection.

A photo "matches" a subject cluster iff at least one of its faces lies
strictly within that cluster's effective threshold of the centroid.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from curator.config import CLUSTER_THRESHOLD
from curator.descriptors import euclidean_distance, to_descriptor
from curator.errors import MalformedDescriptorError
from curator.models import Cluster, FaceObservation, Photo

logger = logging.getLogger(__name__)

DistanceFn = Callable[[np.ndarray, np.ndarray], float]


def effective_threshold(cluster: Cluster, default: float = CLUSTER_THRESHOLD) -> float:
    """Cluster's own threshold override, else the global default."""
    if cluster.similarity_threshold is not None:
        return cluster.similarity_threshold
    return default


def face_descriptor(face: FaceObservation, log_level: int = logging.DEBUG) -> np.ndarray | None:
    """
    Normalized descriptor for a face, or None if it is malformed.

    Malformed faces are logged at log_level.
    """
    try:
        return to_descriptor(face.descriptor)
    except MalformedDescriptorError as e:
        logger.log(log_level, f"Skipping malformed face in photo {face.photo_id}: {e}")
        return None


@dataclass
class PhotoMatch:
    """
    Which target subjects a photo shows, and through which faces.

    subject_ids follows the order of the target clusters; matched_faces
    follows the photo's face order and holds each face at most once.
    """
    photo: Photo
    subject_ids: list[str] = field(default_factory=list)
    matched_faces: list[FaceObservation] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.subject_ids)


def match_photo(
    photo: Photo,
    target_clusters: Sequence[Cluster],
    distance: DistanceFn = euclidean_distance,
    default_threshold: float = CLUSTER_THRESHOLD,
) -> PhotoMatch:
    """Match every face of a photo against every target cluster."""
    result = PhotoMatch(photo=photo)
    if not photo.faces or not target_clusters:
        return result

    hit_ids = set()
    for face in photo.faces:
        desc = face_descriptor(face)
        if desc is None:
            continue

        face_matched = False
        for cluster in target_clusters:
            if distance(desc, cluster.descriptor) < effective_threshold(cluster, default_threshold):
                hit_ids.add(cluster.id)
                face_matched = True

        if face_matched:
            result.matched_faces.append(face)

    result.subject_ids = [c.id for c in target_clusters if c.id in hit_ids]
    return result


def count_matched_subjects(
    photo: Photo,
    target_clusters: Sequence[Cluster],
    distance: DistanceFn = euclidean_distance,
    default_threshold: float = CLUSTER_THRESHOLD,
) -> int:
    """Number of distinct target subjects visible in a photo."""
    return len(match_photo(photo, target_clusters, distance, default_threshold).subject_ids)


def total_face_area(photo: Photo) -> float:
    """Sum of all face bounding-box areas in a photo."""
    return sum(face.box.area for face in photo.faces)
