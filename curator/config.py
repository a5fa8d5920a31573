"""
Configuration for the album curator core.

Contains:
- Matching thresholds for face clustering (descriptor-space distances)
- Burst detection window and best-shot weights
- Group-balanced selection constants

Tunable values are read from environment variables with sensible defaults.
Thresholds assume 128-dim descriptors compared with Euclidean distance,
where 0.6 is the usual "same person" cut for dlib-style models. We run
stricter than that to prefer under-clustering.
"""

import os

# =============================================================================
# Descriptor space
# =============================================================================

# Every face descriptor and every cluster centroid has this many dimensions.
DESCRIPTOR_DIM = 128

# =============================================================================
# Clustering Thresholds
# =============================================================================

# Default per-cluster match threshold. A face joins a cluster only when its
# distance to the centroid is strictly below the cluster's effective threshold
# (its own override, else this value).
CLUSTER_THRESHOLD = float(os.getenv("CURATOR_CLUSTER_THRESHOLD", "0.4"))

# Upper bound for merge suggestions. Pairs of clusters whose centroids sit
# between max(their thresholds) and this value are shown to the user as
# "maybe the same person". Never used for automatic merging.
MERGE_SUGGESTION_THRESHOLD = float(
    os.getenv("CURATOR_MERGE_SUGGESTION_THRESHOLD", "0.45")
)

# Auto-generated cluster labels look like "Person 3". Anything else is
# treated as a human-given name.
AUTO_LABEL_PREFIX = "Person "

# Placeholder bucket for faces nobody could identify. Excluded from merge
# suggestions.
UNRECOGNIZED_CLUSTER_ID = "unrecognized"
UNRECOGNIZED_LABEL = "Unrecognized"

# =============================================================================
# Burst Detection
# =============================================================================

# A gap of at least this many milliseconds between consecutive photos
# starts a new burst group.
BURST_THRESHOLD_MS = int(os.getenv("CURATOR_BURST_THRESHOLD_MS", "2000"))

# Best-shot score = subjects * SUBJECT + faces * FACE + min(area / AREA_NORM, 1)
BURST_SUBJECT_WEIGHT = 1000
BURST_FACE_COUNT_WEIGHT = 10
BURST_FACE_AREA_NORM = 100_000

# =============================================================================
# Selection
# =============================================================================

# Penalty multiplier on the stddev of per-subject selection counts.
# 25 makes balance dominate coverage and quality except near ties.
BALANCE_PENALTY_K = float(os.getenv("CURATOR_BALANCE_PENALTY_K", "25"))

# Fixed bonus applied (signed by the solo/group preference) to candidates
# showing several target subjects vs. exactly one.
GROUP_BIAS_BONUS = 1.0

# =============================================================================
# Audit trail
# =============================================================================

EVENT_LOG_DIR = os.getenv("CURATOR_EVENT_LOG_DIR", "logs")
