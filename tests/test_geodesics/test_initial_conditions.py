"""Tests for camera-ray to spacetime-state conversion."""

import jax.numpy as jnp
import numpy as np
import pytest

from kerrtrace.geodesics import (
    GeodesicState,
    camera_to_spacetime,
    normalize_null_momentum,
    null_norm,
)
from kerrtrace.spacetime import BlackHole


class TestCameraToSpacetime:
    """Camera ray to (t, r, theta, phi) position and momentum."""

    def test_on_axis_ray(self):
        state = camera_to_spacetime([0.0, 0.0, 5.0], [0.0, 0.0, -1.0])
        assert isinstance(state, GeodesicState)
        np.testing.assert_allclose(state.position, [0.0, 5.0, 0.0, 0.0], atol=1e-15)
        np.testing.assert_array_equal(np.asarray(state.momentum), [1.0, 0.0, 0.0, -1.0])

    def test_equatorial_ray(self):
        state = camera_to_spacetime([3.0, 4.0, 0.0], [1.0, 2.0, 3.0])
        assert jnp.isclose(state.radius(), 5.0)
        assert jnp.isclose(state.theta(), jnp.pi / 2)
        assert jnp.isclose(state.position[3], jnp.arctan2(4.0, 3.0))

    def test_direction_not_normalized(self):
        state = camera_to_spacetime([0.0, 0.0, 5.0], [0.0, 3.0, -4.0])
        np.testing.assert_array_equal(np.asarray(state.momentum), [1.0, 0.0, 3.0, -4.0])

    def test_relative_to_black_hole_center(self):
        bh = BlackHole(mass=1.0, position=[10.0, 0.0, 0.0])
        state = camera_to_spacetime([10.0, 0.0, 7.0], [0.0, 0.0, -1.0], bh)
        assert jnp.isclose(state.radius(), 7.0)
        assert jnp.isclose(state.theta(), 0.0)

    def test_origin_at_center_gives_nan_theta(self):
        state = camera_to_spacetime([0.0, 0.0, 0.0], [1.0, 0.0, 0.0])
        assert state.radius() == 0.0
        assert jnp.isnan(state.theta())
        assert not state.is_finite()

    def test_bad_shapes(self):
        with pytest.raises(ValueError, match="shape"):
            camera_to_spacetime([0.0, 5.0], [0.0, 0.0, 1.0])


class TestGeodesicState:
    """Flat-vector conversion and shape validation."""

    def test_vector_round_trip(self):
        y = jnp.arange(8.0)
        state = GeodesicState.from_vector(y)
        np.testing.assert_array_equal(np.asarray(state.to_vector()), np.asarray(y))

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            GeodesicState(jnp.zeros(3), jnp.zeros(4))


class TestNormalizeNullMomentum:
    """Solving the null constraint for k^t."""

    @pytest.mark.parametrize("spin", [0.0, 0.5, 0.9])
    def test_null_after_normalization(self, spin):
        bh = BlackHole(mass=1.0, spin=spin)
        state = camera_to_spacetime([6.0, 2.0, 3.0], [-1.0, 0.02, 0.01], bh)
        normalized = normalize_null_momentum(state, bh)
        norm = null_norm(normalized.position, normalized.momentum, bh)
        assert abs(float(norm)) < 1e-10

    def test_future_directed_and_spatial_kept(self, schwarzschild_hole):
        state = camera_to_spacetime([0.0, 8.0, 1.0], [0.5, 0.01, 0.0])
        normalized = normalize_null_momentum(state, schwarzschild_hole)
        assert normalized.momentum[0] > 0.0
        np.testing.assert_array_equal(
            np.asarray(normalized.momentum[1:]), np.asarray(state.momentum[1:])
        )
        np.testing.assert_array_equal(
            np.asarray(normalized.position), np.asarray(state.position)
        )

    def test_schwarzschild_closed_form(self, schwarzschild_hole):
        """Radial photon: k^t = k^r / (1 - 2M/r)."""
        state = GeodesicState(
            jnp.array([0.0, 10.0, jnp.pi / 2, 0.0]),
            jnp.array([1.0, -1.0, 0.0, 0.0]),
        )
        normalized = normalize_null_momentum(state, schwarzschild_hole)
        assert jnp.isclose(normalized.momentum[0], 1.0 / 0.8)
