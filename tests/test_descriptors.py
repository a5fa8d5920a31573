"""
Tests for the descriptor normalization boundary and distance helpers.

Descriptors arrive as lists (JSON round-trips), float64 arrays or tuples;
everything must come out as a contiguous float32 vector of DESCRIPTOR_DIM.
"""

import numpy as np
import pytest


class TestToDescriptor:
    """Tests for to_descriptor coercion."""

    def test_list_becomes_float32_array(self):
        """A plain list of floats is converted to a float32 vector."""
        from curator.descriptors import to_descriptor

        vec = to_descriptor([0.5] * 128)

        assert isinstance(vec, np.ndarray)
        assert vec.dtype == np.float32
        assert vec.shape == (128,)
        assert vec.flags["C_CONTIGUOUS"]

    def test_float64_array_is_downcast(self):
        """float64 input (e.g. from numpy math) is accepted and downcast."""
        from curator.descriptors import to_descriptor

        vec = to_descriptor(np.linspace(0, 1, 128, dtype=np.float64))

        assert vec.dtype == np.float32
        assert vec[-1] == pytest.approx(1.0)

    def test_tuple_is_accepted(self):
        """Tuples are numeric sequences too."""
        from curator.descriptors import to_descriptor

        assert to_descriptor(tuple(range(128))).shape == (128,)

    def test_none_is_rejected(self):
        """A missing descriptor raises MalformedDescriptorError."""
        from curator.descriptors import to_descriptor
        from curator.errors import MalformedDescriptorError

        with pytest.raises(MalformedDescriptorError):
            to_descriptor(None)

    def test_wrong_length_is_rejected(self):
        """Descriptors from a different model (wrong dim) are rejected."""
        from curator.descriptors import to_descriptor
        from curator.errors import MalformedDescriptorError

        with pytest.raises(MalformedDescriptorError, match="expected 128"):
            to_descriptor([0.1] * 512)

    def test_non_numeric_is_rejected(self):
        """Strings inside the vector are not coercible."""
        from curator.descriptors import to_descriptor
        from curator.errors import MalformedDescriptorError

        with pytest.raises(MalformedDescriptorError):
            to_descriptor(["a"] * 128)

    def test_two_dimensional_is_rejected(self):
        """Only flat vectors are descriptors."""
        from curator.descriptors import to_descriptor
        from curator.errors import MalformedDescriptorError

        with pytest.raises(MalformedDescriptorError):
            to_descriptor(np.zeros((2, 64)))

    def test_nan_is_rejected(self):
        """Non-finite values would poison every distance computed from them."""
        from curator.descriptors import to_descriptor
        from curator.errors import MalformedDescriptorError

        vec = [0.0] * 128
        vec[7] = float("nan")
        with pytest.raises(MalformedDescriptorError):
            to_descriptor(vec)

    def test_expected_dim_none_skips_length_check(self):
        """expected_dim=None accepts any non-empty length."""
        from curator.descriptors import to_descriptor

        assert to_descriptor([1.0, 2.0], expected_dim=None).shape == (2,)

    def test_malformed_error_is_value_error(self):
        """Callers catching ValueError also catch malformed descriptors."""
        from curator.errors import MalformedDescriptorError

        assert issubclass(MalformedDescriptorError, ValueError)


class TestDistance:
    """Tests for euclidean_distance and mean_descriptor."""

    def test_distance_matches_numpy_norm(self):
        """Euclidean distance equals the L2 norm of the difference."""
        from curator.descriptors import euclidean_distance

        rng = np.random.default_rng(3)
        a = rng.standard_normal(128).astype(np.float32)
        b = rng.standard_normal(128).astype(np.float32)

        assert euclidean_distance(a, b) == pytest.approx(float(np.linalg.norm(a - b)), rel=1e-5)

    def test_distance_returns_python_float(self):
        """Distances are plain floats, safe to log and serialize."""
        from curator.descriptors import euclidean_distance

        d = euclidean_distance(np.zeros(128, dtype=np.float32), np.ones(128, dtype=np.float32))

        assert type(d) is float

    def test_mean_is_dimension_wise(self):
        """The centroid is the per-dimension average."""
        from curator.descriptors import mean_descriptor

        a = np.zeros(128, dtype=np.float32)
        b = np.full(128, 2.0, dtype=np.float32)

        mean = mean_descriptor([a, b])

        assert mean.dtype == np.float32
        assert np.allclose(mean, 1.0)

    def test_mean_of_nothing_raises(self):
        """Averaging an empty list is a programming error."""
        from curator.descriptors import mean_descriptor

        with pytest.raises(ValueError):
            mean_descriptor([])
