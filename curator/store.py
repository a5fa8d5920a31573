"""
In-memory cluster and photo store.

Implements the store interface the core consumes:
    get_clusters, get_cluster, save_cluster, delete_cluster,
    get_photos_for_session, get_photo

Durable storage is the caller's concern; any object with these methods
can stand in for MemoryStore. Clusters are copied on the way in and out
so callers never share mutable state with the store.
"""

import logging

from curator.models import Cluster, Photo

logger = logging.getLogger(__name__)


class MemoryStore:
    """Keyed in-memory storage of whole Cluster and Photo records."""

    def __init__(self, clusters: list[Cluster] | None = None, photos: list[Photo] | None = None):
        self._clusters: dict[str, Cluster] = {}
        self._photos: dict[str, Photo] = {}

        for cluster in clusters or []:
            self.save_cluster(cluster)
        for photo in photos or []:
            self.add_photo(photo)

    # --- clusters ---

    def get_clusters(self) -> list[Cluster]:
        """All clusters, in insertion order (copies)."""
        return [c.copy() for c in self._clusters.values()]

    def get_cluster(self, cluster_id: str) -> Cluster | None:
        cluster = self._clusters.get(cluster_id)
        return cluster.copy() if cluster else None

    def save_cluster(self, cluster: Cluster) -> None:
        """Insert or replace a cluster by id (last write wins)."""
        self._clusters[cluster.id] = cluster.copy()

    def delete_cluster(self, cluster_id: str) -> None:
        """Remove a cluster. Unknown ids are ignored."""
        if self._clusters.pop(cluster_id, None) is None:
            logger.debug(f"delete_cluster: {cluster_id} not present")

    # --- photos ---

    def add_photo(self, photo: Photo) -> None:
        self._photos[photo.id] = photo

    def get_photo(self, photo_id: str) -> Photo | None:
        return self._photos.get(photo_id)

    def get_photos_for_session(self, session_id: str) -> list[Photo]:
        """Photos of one session, in insertion order."""
        return [p for p in self._photos.values() if p.session_id == session_id]
