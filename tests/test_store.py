"""Tests for the in-memory store and the Cluster record."""

import numpy as np
import pytest


def make_cluster(cluster_id="c1", label="Taro", photo_ids=("p1",)):
    from curator.models import Cluster
    return Cluster(
        id=cluster_id,
        label=label,
        descriptor=np.ones(128, dtype=np.float32),
        photo_ids=set(photo_ids),
    )


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_save_and_get(self, store):
        store.save_cluster(make_cluster())

        cluster = store.get_cluster("c1")

        assert cluster.label == "Taro"
        assert cluster.photo_ids == {"p1"}

    def test_unknown_cluster_is_none(self, store):
        assert store.get_cluster("missing") is None

    def test_save_replaces_by_id(self, store):
        """Last write wins."""
        store.save_cluster(make_cluster(label="Taro"))
        store.save_cluster(make_cluster(label="Hana"))

        assert [c.label for c in store.get_clusters()] == ["Hana"]

    def test_returned_clusters_are_copies(self, store):
        """Mutating a returned cluster doesn't touch the stored record."""
        store.save_cluster(make_cluster())

        fetched = store.get_cluster("c1")
        fetched.photo_ids.add("p2")
        fetched.descriptor[0] = 99.0

        stored = store.get_cluster("c1")
        assert stored.photo_ids == {"p1"}
        assert stored.descriptor[0] == 1.0

    def test_saved_clusters_are_copies(self, store):
        cluster = make_cluster()
        store.save_cluster(cluster)

        cluster.label = "Changed"

        assert store.get_cluster("c1").label == "Taro"

    def test_delete(self, store):
        store.save_cluster(make_cluster())

        store.delete_cluster("c1")

        assert store.get_clusters() == []

    def test_delete_unknown_is_ignored(self, store):
        store.delete_cluster("missing")

    def test_photos_by_session(self, store):
        """Session photos come back in insertion order."""
        from curator.models import Photo

        store.add_photo(Photo(id="b", session_id="s1"))
        store.add_photo(Photo(id="x", session_id="s2"))
        store.add_photo(Photo(id="a", session_id="s1"))

        assert [p.id for p in store.get_photos_for_session("s1")] == ["b", "a"]
        assert store.get_photo("x").session_id == "s2"
        assert store.get_photo("nope") is None

    def test_constructor_seeds_records(self):
        from curator.models import Photo
        from curator.store import MemoryStore

        store = MemoryStore(clusters=[make_cluster()], photos=[Photo(id="p1")])

        assert store.get_cluster("c1") is not None
        assert store.get_photo("p1") is not None


class TestClusterRecord:
    """Tests for Cluster normalization and serialization."""

    def test_descriptor_is_normalized_on_construction(self):
        """A JSON-style list centroid becomes a float32 vector."""
        from curator.models import Cluster

        cluster = Cluster(id="c", label="x", descriptor=[0.25] * 128, photo_ids=["p1", "p1"])

        assert cluster.descriptor.dtype == np.float32
        assert cluster.photo_ids == {"p1"}

    def test_bad_centroid_is_rejected(self):
        from curator.errors import MalformedDescriptorError
        from curator.models import Cluster

        with pytest.raises(MalformedDescriptorError):
            Cluster(id="c", label="x", descriptor=[0.25] * 3)

    def test_dict_round_trip(self):
        """to_dict/from_dict preserve every field, including the threshold."""
        from curator.models import Cluster

        cluster = make_cluster(photo_ids=("p2", "p1"))
        cluster.confirmed_photo_ids = {"p1"}
        cluster.similarity_threshold = 0.35

        data = cluster.to_dict()
        restored = Cluster.from_dict(data)

        assert data["photo_ids"] == ["p1", "p2"]
        assert data["config"] == {"similarity_threshold": 0.35}
        assert restored.photo_ids == cluster.photo_ids
        assert restored.confirmed_photo_ids == {"p1"}
        assert restored.similarity_threshold == 0.35
        assert np.array_equal(restored.descriptor, cluster.descriptor)

    def test_missing_config_means_default_threshold(self):
        from curator.models import Cluster

        restored = Cluster.from_dict({"id": "c", "descriptor": [0.0] * 128})

        assert restored.similarity_threshold is None
        assert restored.label == ""
        assert restored.size == 0


class TestPhotoRecord:
    """Tests for Photo identity semantics."""

    def test_photos_are_hashable(self):
        """Photos with faces can be used in sets and as dict keys."""
        from curator.models import FaceObservation, Photo

        face = FaceObservation(descriptor=[0.0] * 128, photo_id="p1")
        photo = Photo(id="p1", faces=[face])

        assert photo in {photo}
        assert {photo: 1}[photo] == 1

    def test_photos_compare_by_identity(self):
        from curator.models import Photo

        assert Photo(id="p1") != Photo(id="p1")
