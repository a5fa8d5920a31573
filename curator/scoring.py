"""
Per-photo quality score used by group-balanced selection.

Combines face-level signals (smile, detector confidence, frontality,
horizontal centering) averaged over the faces that matched a target
subject, with the photo's sharpness and a signed solo/group preference.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from curator.config import GROUP_BIAS_BONUS
from curator.models import FaceObservation, Photo


@dataclass
class SelectionWeights:
    """
    User-tunable weights for quality_score.

    Attributes:
        smile: Weight of the average smile score
        confidence: Weight of the average detection confidence
        frontality: Weight of 1 - average |pan|
        centeredness: Weight of how close faces sit to the horizontal center
        blur: Weight of the photo sharpness score
        group_balance: 0 prefers solo shots, 1 prefers group shots,
            0.5 is neutral. Clamped to [0, 1].
    """
    smile: float = 1.0
    confidence: float = 1.0
    frontality: float = 1.0
    centeredness: float = 0.5
    blur: float = 1.0
    group_balance: float = 0.5

    def __post_init__(self):
        self.group_balance = min(max(self.group_balance, 0.0), 1.0)

    @property
    def group_bias(self) -> float:
        """group_balance mapped onto [-1, 1]."""
        return 2 * self.group_balance - 1


def quality_score(
    photo: Photo,
    matched_faces: Sequence[FaceObservation],
    subject_count: int,
    weights: SelectionWeights | None = None,
) -> float:
    """
    Quality of a candidate photo for the album.

    Args:
        photo: Candidate photo
        matched_faces: Faces of the photo that matched a target subject
        subject_count: Number of distinct target subjects in the photo
        weights: Scoring weights (defaults if None)

    Returns:
        Unbounded score; higher is better
    """
    if weights is None:
        weights = SelectionWeights()

    score = 0.0

    if matched_faces:
        avg_smile = float(np.mean([f.quality.smile_score for f in matched_faces]))
        avg_detection = float(np.mean([f.quality.detection_score for f in matched_faces]))
        avg_pan = float(np.mean([abs(f.quality.pan_score) for f in matched_faces]))

        score += weights.smile * avg_smile * 2
        score += weights.confidence * avg_detection
        score += weights.frontality * (1 - avg_pan)

        # Centering needs the photo width; unknown width contributes nothing
        if photo.width and photo.width > 0:
            avg_offset = float(np.mean([
                abs(f.box.center_x / photo.width - 0.5) for f in matched_faces
            ]))
            score += weights.centeredness * (1 - 2 * avg_offset)

    score += weights.blur * (photo.blur_score or 0.0) * 2

    if subject_count > 1:
        score += weights.group_bias * GROUP_BIAS_BONUS
    elif subject_count == 1:
        score -= weights.group_bias * GROUP_BIAS_BONUS

    return score
