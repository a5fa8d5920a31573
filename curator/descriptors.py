"""
Descriptor normalization and distance.

Single boundary for descriptor data: whatever shape a descriptor arrives in
(list from a JSON round-trip, float64 array, tuple), it is coerced here to a
contiguous float32 vector of DESCRIPTOR_DIM before any distance is computed.
"""

import numpy as np
from scipy.spatial.distance import euclidean

from curator.config import DESCRIPTOR_DIM
from curator.errors import MalformedDescriptorError


def to_descriptor(value, expected_dim: int | None = DESCRIPTOR_DIM) -> np.ndarray:
    """
    Coerce a generic numeric array into a working descriptor.

    Args:
        value: Any 1-D numeric sequence (list, tuple, numpy array)
        expected_dim: Required length, or None to accept any non-empty length

    Returns:
        Contiguous float32 vector

    Raises:
        MalformedDescriptorError: None, non-numeric, wrong shape/length,
            or containing NaN/inf
    """
    if value is None:
        raise MalformedDescriptorError("Descriptor is missing")

    try:
        vec = np.asarray(value, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise MalformedDescriptorError(f"Descriptor is not numeric: {e}") from e

    if vec.ndim != 1 or vec.size == 0:
        raise MalformedDescriptorError(
            f"Descriptor must be a non-empty 1-D vector, got shape {vec.shape}"
        )

    if expected_dim is not None and vec.shape[0] != expected_dim:
        raise MalformedDescriptorError(
            f"Descriptor has {vec.shape[0]} dimensions, expected {expected_dim}"
        )

    if not np.all(np.isfinite(vec)):
        raise MalformedDescriptorError("Descriptor contains NaN or inf")

    return np.ascontiguousarray(vec)


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean (L2) distance between two descriptors of equal length."""
    return float(euclidean(a, b))


def mean_descriptor(descriptors: list[np.ndarray]) -> np.ndarray:
    """
    Dimension-wise mean of descriptors.

    Raises:
        ValueError: If descriptors is empty
    """
    if not descriptors:
        raise ValueError("No descriptors to average")

    return np.mean(np.vstack(descriptors), axis=0).astype(np.float32)
