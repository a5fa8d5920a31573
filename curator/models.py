"""
Data model for photos, detected faces and person clusters.

Photos and faces are produced by ingestion and are read-only here.
Clusters are the only records the core creates and mutates.

Face descriptors are kept exactly as the detector (or a storage round-trip)
delivered them; they are normalized lazily through
curator.descriptors.to_descriptor so that one malformed face can be skipped
without rejecting the whole photo. Cluster centroids are normalized on
construction.
"""

from dataclasses import dataclass, field

import numpy as np

from curator.descriptors import to_descriptor


@dataclass(frozen=True)
class Box:
    """Face bounding box in pixels."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def area(self) -> float:
        return (self.width or 0) * (self.height or 0)

    @property
    def center_x(self) -> float:
        return (self.x or 0) + (self.width or 0) / 2


@dataclass(frozen=True)
class FaceQuality:
    """
    Per-face quality signals from the detector.

    Attributes:
        smile_score: P(happy expression), 0-1
        pan_score: Head yaw, 0 = frontal, -1/+1 = turned fully left/right
        detection_score: Detector confidence, 0-1
    """
    smile_score: float = 0.0
    pan_score: float = 0.0
    detection_score: float = 0.0


@dataclass(frozen=True, eq=False)
class FaceObservation:
    """One detected face. Immutable; clusters only reference its photo."""
    descriptor: object  # raw numeric sequence, see module docstring
    photo_id: str
    box: Box = field(default_factory=Box)
    quality: FaceQuality = field(default_factory=FaceQuality)
    thumbnail: bytes | None = None


@dataclass(frozen=True, eq=False)
class Photo:
    """
    A photo from an ingestion session.

    Compared and hashed by identity, like FaceObservation.

    timestamp is milliseconds since the epoch. width/height are 0 when
    the ingester didn't record them.
    """
    id: str
    session_id: str = ""
    timestamp: float = 0
    faces: list[FaceObservation] = field(default_factory=list)
    blur_score: float = 0.0
    excluded: bool = False
    no_face_match: bool = False
    width: float = 0
    height: float = 0


@dataclass
class Cluster:
    """
    A persistent group of faces believed to be one person.

    photo_ids holds every photo routed here (automatically or by hand);
    confirmed_photo_ids is the human-verified subset and drives centroid
    recalculation.
    """
    id: str
    label: str
    descriptor: np.ndarray
    photo_ids: set[str] = field(default_factory=set)
    confirmed_photo_ids: set[str] = field(default_factory=set)
    thumbnail: bytes | None = None
    similarity_threshold: float | None = None

    def __post_init__(self):
        self.descriptor = to_descriptor(self.descriptor)
        self.photo_ids = set(self.photo_ids)
        self.confirmed_photo_ids = set(self.confirmed_photo_ids)

    @property
    def size(self) -> int:
        return len(self.photo_ids)

    def copy(self) -> "Cluster":
        """Independent copy (sets and centroid are not shared)."""
        return Cluster(
            id=self.id,
            label=self.label,
            descriptor=self.descriptor.copy(),
            photo_ids=set(self.photo_ids),
            confirmed_photo_ids=set(self.confirmed_photo_ids),
            thumbnail=self.thumbnail,
            similarity_threshold=self.similarity_threshold,
        )

    def to_dict(self) -> dict:
        config = {}
        if self.similarity_threshold is not None:
            config["similarity_threshold"] = self.similarity_threshold
        return {
            "id": self.id,
            "label": self.label,
            "descriptor": self.descriptor.tolist(),
            "photo_ids": sorted(self.photo_ids),
            "confirmed_photo_ids": sorted(self.confirmed_photo_ids),
            "thumbnail": self.thumbnail,
            "config": config,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cluster":
        """
        Build a Cluster from its store-facing dict shape.

        Raises:
            MalformedDescriptorError: If the stored centroid can't be normalized
        """
        config = data.get("config") or {}
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            descriptor=data.get("descriptor"),
            photo_ids=data.get("photo_ids") or [],
            confirmed_photo_ids=data.get("confirmed_photo_ids") or [],
            thumbnail=data.get("thumbnail"),
            similarity_threshold=config.get("similarity_threshold"),
        )


@dataclass
class SimilarPair:
    """Two clusters close enough to suggest a merge."""
    cluster_a: Cluster
    cluster_b: Cluster
    distance: float
