"""Exceptions raised by the curator core."""


class ClusterNotFoundError(KeyError):
    """A move/merge/recalculate referenced a cluster id the store doesn't have."""

    def __init__(self, cluster_id: str):
        super().__init__(cluster_id)
        self.cluster_id = cluster_id

    def __str__(self) -> str:
        return f"Cluster not found: {self.cluster_id}"


class MalformedDescriptorError(ValueError):
    """A face descriptor could not be coerced to a fixed-length float vector."""
