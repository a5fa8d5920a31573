"""
Incremental Face Clustering with Human Feedback.

Groups face descriptors into persistent person clusters across sessions.
Clusters outlive sessions: every run matches new faces against everything
the store already knows, and human corrections (move, merge) feed back into
the centroids.

Key principles:
- Incremental: a photo already bound to any cluster is never re-clustered,
  so earlier feedback can't be undone by a later run
- Nearest-centroid: a face joins the closest cluster under that cluster's
  own threshold, not the first one under threshold
- Same-pass convergence: a cluster created for one face is a candidate for
  every later face in the same run
- Human-gated drift: centroids are only rebuilt from confirmed evidence
  (recalculate), using single-face photos to disambiguate group shots
- Suggestions, never auto-merges: near-duplicate clusters are surfaced by
  find_similar_pairs for a human to decide
"""

import logging
import re
import uuid
from typing import Sequence

import numpy as np

from curator.config import (
    AUTO_LABEL_PREFIX,
    CLUSTER_THRESHOLD,
    MERGE_SUGGESTION_THRESHOLD,
    UNRECOGNIZED_CLUSTER_ID,
    UNRECOGNIZED_LABEL,
)
from curator.descriptors import euclidean_distance, mean_descriptor
from curator.errors import ClusterNotFoundError
from curator.matching import DistanceFn, effective_threshold, face_descriptor
from curator.models import Cluster, Photo, SimilarPair

logger = logging.getLogger(__name__)

_AUTO_LABEL_RE = re.compile(rf"^{re.escape(AUTO_LABEL_PREFIX)}(\d+)$")


# =============================================================================
# Labels
# =============================================================================

def is_auto_label(label: str | None) -> bool:
    """True for generated labels like "Person 12"."""
    return bool(label) and _AUTO_LABEL_RE.match(label) is not None


def is_placeholder(cluster: Cluster) -> bool:
    """The "Unrecognized" bucket is not a person."""
    return cluster.id == UNRECOGNIZED_CLUSTER_ID or cluster.label == UNRECOGNIZED_LABEL


def is_human_label(label: str | None) -> bool:
    """True if a person typed this name (not auto-generated, not placeholder)."""
    if not label or not label.strip():
        return False
    return not is_auto_label(label) and label != UNRECOGNIZED_LABEL


def next_auto_label(clusters: Sequence[Cluster]) -> str:
    """
    Next sequential "Person N" label.

    N is one past the highest auto-label number in use, so labels stay
    unique after merges have removed clusters from the middle of the range.
    """
    highest = 0
    for cluster in clusters:
        match = _AUTO_LABEL_RE.match(cluster.label or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{AUTO_LABEL_PREFIX}{highest + 1}"


# =============================================================================
# Stateless helpers
# =============================================================================

def find_similar_pairs(
    clusters: Sequence[Cluster],
    distance: DistanceFn = euclidean_distance,
    suggestion_threshold: float = MERGE_SUGGESTION_THRESHOLD,
    default_threshold: float = CLUSTER_THRESHOLD,
) -> list[SimilarPair]:
    """
    Find cluster pairs that are probably the same person.

    A pair is reported when its centroid distance is at or above both
    clusters' effective thresholds (otherwise faces would already flow
    between them) and below the looser suggestion threshold. Empty clusters
    and the placeholder bucket are ignored.

    Returns:
        Pairs sorted by distance, most confident first
    """
    candidates = [c for c in clusters if c.photo_ids and not is_placeholder(c)]

    pairs = []
    for i, a in enumerate(candidates):
        for b in candidates[i + 1:]:
            dist = distance(a.descriptor, b.descriptor)
            floor = max(
                effective_threshold(a, default_threshold),
                effective_threshold(b, default_threshold),
            )
            if floor <= dist < suggestion_threshold:
                pairs.append(SimilarPair(cluster_a=a, cluster_b=b, distance=dist))

    pairs.sort(key=lambda p: p.distance)
    return pairs


def unrecognized_photos(photos: Sequence[Photo]) -> list[Photo]:
    """Photos with no detected face at all (clustering can't route them)."""
    return [p for p in photos if not p.faces]


# =============================================================================
# Engine
# =============================================================================

class ClusteringEngine:
    """
    Clusters faces and applies human corrections against a cluster store.

    The store must provide get_clusters, get_cluster, save_cluster,
    delete_cluster, get_photos_for_session and get_photo
    (see curator.store.MemoryStore). Callers serialize runs per session
    and edits per cluster id; the engine does no locking.
    """

    def __init__(
        self,
        store,
        distance: DistanceFn = euclidean_distance,
        default_threshold: float = CLUSTER_THRESHOLD,
        recorder=None,
    ):
        self.store = store
        self.distance = distance
        self.default_threshold = default_threshold
        self.recorder = recorder

    # --- clustering runs ---

    def cluster(
        self,
        session_photos: Sequence[Photo],
        existing_clusters: Sequence[Cluster] | None = None,
    ) -> list[Cluster]:
        """
        Route the faces of a session into clusters.

        Args:
            session_photos: Photos of the current session, in processing order
            existing_clusters: Known clusters; read from the store if None.
                Never mutated; the engine works on copies. Stored clusters
                missing from this list are added to it.

        Returns:
            Clusters with at least one photo from this session, plus every
            human-named cluster, largest first
        """
        stored = self.store.get_clusters()
        if existing_clusters is None:
            clusters = stored
        else:
            clusters = [c.copy() for c in existing_clusters]
            # Stored clusters the caller didn't pass still own their photos
            known_ids = {c.id for c in clusters}
            clusters.extend(c for c in stored if c.id not in known_ids)

        session_ids = {p.id for p in session_photos}

        # Anything already routed (by a run or by a human) stays put
        bound: set[str] = set()
        for c in clusters:
            bound |= c.photo_ids
            bound |= c.confirmed_photo_ids

        touched: dict[str, Cluster] = {}
        faces_processed = 0
        faces_skipped = 0
        created = 0

        for photo in session_photos:
            if photo.id in bound or photo.excluded:
                continue

            for face in photo.faces:
                desc = face_descriptor(face, logging.WARNING)
                if desc is None:
                    faces_skipped += 1
                    continue
                faces_processed += 1

                best = self._nearest_cluster(desc, clusters)
                if best is not None:
                    best.photo_ids.add(photo.id)
                    if not best.thumbnail and face.thumbnail:
                        best.thumbnail = face.thumbnail
                    logger.debug(f"Photo {photo.id}: face joined {best.label}")
                else:
                    best = Cluster(
                        id=str(uuid.uuid4()),
                        label=next_auto_label(clusters),
                        descriptor=desc,
                        photo_ids={photo.id},
                        thumbnail=face.thumbnail,
                        similarity_threshold=self.default_threshold,
                    )
                    clusters.append(best)
                    created += 1
                    logger.debug(f"Photo {photo.id}: new cluster {best.label}")

                touched[best.id] = best

        for cluster in touched.values():
            self.store.save_cluster(cluster)

        relevant = [
            c for c in clusters
            if (c.photo_ids | c.confirmed_photo_ids) & session_ids or is_human_label(c.label)
        ]
        relevant.sort(key=lambda c: c.size, reverse=True)

        logger.info(
            f"Clustered {faces_processed} faces from {len(session_photos)} photos "
            f"({created} new clusters, {len(touched)} saved, {faces_skipped} skipped)"
        )
        self._record("CLUSTER_RUN", {
            "photos": len(session_photos),
            "faces_processed": faces_processed,
            "faces_skipped": faces_skipped,
            "clusters_created": created,
            "clusters_saved": sorted(touched),
        })

        return relevant

    def cluster_session(self, session_id: str) -> list[Cluster]:
        """Load a session's photos from the store and cluster them."""
        return self.cluster(self.store.get_photos_for_session(session_id))

    def suggest_merges(self) -> list[SimilarPair]:
        """find_similar_pairs over every cluster in the store."""
        return find_similar_pairs(
            self.store.get_clusters(),
            distance=self.distance,
            default_threshold=self.default_threshold,
        )

    def _nearest_cluster(self, desc: np.ndarray, clusters: list[Cluster]) -> Cluster | None:
        best = None
        best_dist = float("inf")
        for cluster in clusters:
            dist = self.distance(desc, cluster.descriptor)
            if dist < effective_threshold(cluster, self.default_threshold) and dist < best_dist:
                best = cluster
                best_dist = dist
        return best

    # --- feedback ---

    def recalculate(self, cluster_id: str) -> Cluster:
        """
        Rebuild a cluster's centroid from its (preferably confirmed) photos.

        Uses confirmed_photo_ids when any exist, else all photo_ids.
        Single-face photos are unambiguous and form a preliminary centroid;
        for each group photo, the face nearest that preliminary centroid
        (within threshold) is used. Only when there is no single-face
        evidence does the current centroid serve as the reference.

        Raises:
            ClusterNotFoundError: If cluster_id is unknown
        """
        return self._recalculate(self._require(cluster_id))

    def _recalculate(self, cluster: Cluster) -> Cluster:
        target_ids = cluster.confirmed_photo_ids or cluster.photo_ids
        if not target_ids:
            logger.info(f"Recalculate {cluster.label}: no photos, centroid unchanged")
            return cluster

        threshold = effective_threshold(cluster, self.default_threshold)

        single_face: list[np.ndarray] = []
        group_faces: list[list[np.ndarray]] = []
        for photo_id in sorted(target_ids):
            photo = self.store.get_photo(photo_id)
            if photo is None:
                logger.debug(f"Recalculate {cluster.label}: photo {photo_id} not in store")
                continue

            descs = [
                d for d in (face_descriptor(f, logging.WARNING) for f in photo.faces)
                if d is not None
            ]
            if not descs:
                continue
            if len(photo.faces) == 1:
                single_face.append(descs[0])
            else:
                group_faces.append(descs)

        reference = mean_descriptor(single_face) if single_face else cluster.descriptor

        chosen = list(single_face)
        for descs in group_faces:
            best = None
            best_dist = float("inf")
            for desc in descs:
                dist = self.distance(desc, reference)
                if dist < threshold and dist < best_dist:
                    best = desc
                    best_dist = dist
            if best is not None:
                chosen.append(best)

        if not chosen:
            logger.info(f"Recalculate {cluster.label}: no usable faces, centroid unchanged")
            return cluster

        cluster.descriptor = mean_descriptor(chosen)
        self.store.save_cluster(cluster)

        logger.info(
            f"Recalculated centroid for {cluster.label} using {len(chosen)} faces "
            f"({len(single_face)} single-face)"
        )
        self._record("RECALCULATE", {
            "cluster_id": cluster.id,
            "faces_used": len(chosen),
            "single_face_photos": len(single_face),
            "used_confirmed": bool(cluster.confirmed_photo_ids),
        })
        return cluster

    def move(self, photo_id: str, from_id: str, to_id: str) -> tuple[Cluster, Cluster]:
        """
        Move a photo between clusters. Moving confirms the photo in the target.

        Both centroids are recalculated afterwards.

        Returns:
            (source, target) as persisted

        Raises:
            ClusterNotFoundError: If either cluster is unknown (nothing is written)
        """
        source = self._require(from_id)
        target = self._require(to_id)

        if from_id == to_id:
            target.photo_ids.add(photo_id)
            target.confirmed_photo_ids.add(photo_id)
            self.store.save_cluster(target)
            target = self._recalculate(target)
            logger.info(f"Confirmed photo {photo_id} in {target.label}")
            self._record("MOVE", {"photo_id": photo_id, "from_id": from_id, "to_id": to_id})
            return target, target

        source.photo_ids.discard(photo_id)
        source.confirmed_photo_ids.discard(photo_id)
        target.photo_ids.add(photo_id)
        target.confirmed_photo_ids.add(photo_id)

        self.store.save_cluster(source)
        self.store.save_cluster(target)

        source = self._recalculate(source)
        target = self._recalculate(target)

        logger.info(f"Moved photo {photo_id} from {source.label} to {target.label}")
        self._record("MOVE", {"photo_id": photo_id, "from_id": from_id, "to_id": to_id})
        return source, target

    def merge(self, keep_id: str, remove_id: str) -> Cluster:
        """
        Merge remove_id INTO keep_id and delete remove_id.

        - photo_ids / confirmed_photo_ids: union
        - label: a human-given name always beats an auto label, whichever
          side it comes from; with two human names, keep's wins
        - descriptor: mean of the two centroids
        - thumbnail: keep's, else remove's

        Raises:
            ClusterNotFoundError: If either cluster is unknown (nothing is written)
            ValueError: If keep_id == remove_id
        """
        if keep_id == remove_id:
            raise ValueError(f"Cannot merge cluster {keep_id} into itself")

        keep = self._require(keep_id)
        remove = self._require(remove_id)

        previous_label = keep.label
        keep.photo_ids |= remove.photo_ids
        keep.confirmed_photo_ids |= remove.confirmed_photo_ids
        if not is_human_label(keep.label) and is_human_label(remove.label):
            keep.label = remove.label
        keep.descriptor = mean_descriptor([keep.descriptor, remove.descriptor])
        if not keep.thumbnail and remove.thumbnail:
            keep.thumbnail = remove.thumbnail

        self.store.save_cluster(keep)
        self.store.delete_cluster(remove_id)

        logger.info(
            f"Merged cluster {remove.label} into {previous_label} -> {keep.label} "
            f"({keep.size} photos)"
        )
        self._record("MERGE", {
            "keep_id": keep_id,
            "remove_id": remove_id,
            "label": keep.label,
            "photo_count": keep.size,
        })
        return keep

    # --- internals ---

    def _require(self, cluster_id: str) -> Cluster:
        cluster = self.store.get_cluster(cluster_id)
        if cluster is None:
            raise ClusterNotFoundError(cluster_id)
        return cluster

    def _record(self, event_type: str, payload: dict) -> None:
        if self.recorder is not None:
            self.recorder.record(event_type, payload)
