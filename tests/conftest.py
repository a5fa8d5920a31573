"""Shared fixtures for curator core tests."""

import pytest


@pytest.fixture
def store():
    """Empty in-memory cluster/photo store."""
    from curator.store import MemoryStore
    return MemoryStore()


@pytest.fixture
def recorder(tmp_path):
    """Event recorder writing into a per-test directory."""
    from curator.event_recorder import EventRecorder
    return EventRecorder(log_dir=str(tmp_path / "logs"), run_id="run_test")


@pytest.fixture
def engine(store):
    """Clustering engine over the empty store with default settings."""
    from curator.clustering import ClusteringEngine
    return ClusteringEngine(store)
