"""Tests for the BlackHole parameter model and its derived radii."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from kerrtrace.spacetime import BlackHole, default_black_hole


class TestHorizons:
    """Outer / inner horizon radii."""

    def test_schwarzschild_outer_horizon(self):
        """a = 0: r_+ = 2M."""
        for mass in (0.5, 1.0, 3.0):
            bh = BlackHole(mass=mass, spin=0.0)
            assert jnp.isclose(bh.outer_horizon, 2.0 * mass, atol=1e-6)
            assert jnp.isclose(bh.schwarzschild_radius, 2.0 * mass)

    @pytest.mark.parametrize("spin", [0.0, 0.3, 0.7, 0.999, 1.0, -0.6])
    def test_inner_horizon_within_outer(self, spin):
        """0 <= r_- <= r_+ for every physical spin."""
        bh = BlackHole(mass=1.0, spin=spin)
        assert 0.0 <= float(bh.inner_horizon) <= float(bh.outer_horizon)

    def test_extremal_horizons_coincide(self):
        """|a| = M: r_+ = r_- = M."""
        bh = BlackHole(mass=2.0, spin=2.0)
        assert jnp.isclose(bh.outer_horizon, 2.0)
        assert jnp.isclose(bh.inner_horizon, 2.0)

    def test_float64(self, kerr_hole):
        assert kerr_hole.outer_horizon.dtype == jnp.float64


class TestErgosphere:
    """Ergosphere boundary."""

    @pytest.mark.parametrize("spin", [0.0, 0.5, 0.9, 1.0])
    def test_ergosphere_encloses_horizon(self, spin):
        """r_ergo(theta) >= r_+ for all theta."""
        bh = BlackHole(mass=1.0, spin=spin)
        thetas = jnp.linspace(0.0, jnp.pi, 91)
        r_ergo = bh.ergosphere_radius(thetas)
        assert jnp.all(r_ergo >= bh.outer_horizon - 1e-12)

    def test_ergosphere_touches_horizon_at_poles(self, kerr_hole):
        assert jnp.isclose(kerr_hole.ergosphere_radius(0.0), kerr_hole.outer_horizon)

    def test_ergosphere_equator_is_2m(self, kerr_hole):
        """On the equator the static limit sits at 2M regardless of spin."""
        assert jnp.isclose(kerr_hole.ergosphere_radius(jnp.pi / 2), 2.0)


class TestIsco:
    """Bardeen-Press-Teukolsky ISCO radius."""

    def test_schwarzschild_isco(self, schwarzschild_hole):
        """a = 0: r_isco = 6M."""
        assert abs(float(schwarzschild_hole.isco_radius()) - 6.0) < 0.1
        np.testing.assert_allclose(float(schwarzschild_hole.isco_radius()), 6.0, atol=1e-10)

    def test_schwarzschild_isco_scales_with_mass(self):
        assert jnp.isclose(BlackHole(mass=2.5).isco_radius(), 15.0)

    def test_extremal_isco(self):
        """|a| = M: prograde r_isco = M, retrograde r_isco = 9M."""
        bh = BlackHole(mass=1.0, spin=1.0)
        assert jnp.isclose(bh.isco_radius(prograde=True), 1.0, atol=1e-8)
        assert jnp.isclose(bh.isco_radius(prograde=False), 9.0, atol=1e-8)

    def test_prograde_inside_retrograde(self, kerr_hole):
        assert kerr_hole.isco_radius(prograde=True) < 6.0
        assert kerr_hole.isco_radius(prograde=False) > 6.0

    def test_isco_outside_horizon(self):
        for spin in (0.0, 0.3, 0.9, 0.99):
            bh = BlackHole(mass=1.0, spin=spin)
            assert bh.isco_radius() >= bh.outer_horizon


class TestConstruction:
    """Spin clamping, position and helpers."""

    def test_spin_clamped_silently(self):
        assert float(BlackHole(mass=1.0, spin=2.0).spin) == 1.0
        assert float(BlackHole(mass=1.0, spin=-3.0).spin) == -1.0
        assert float(BlackHole(mass=2.0, spin=1.5).spin) == 1.5

    def test_from_spin_parameter(self):
        bh = BlackHole.from_spin_parameter(2.0, 0.5)
        assert jnp.isclose(bh.spin, 1.0)
        assert jnp.isclose(bh.spin_parameter, 0.5)

    def test_default_position_is_origin(self, kerr_hole):
        np.testing.assert_array_equal(np.asarray(kerr_hole.position), np.zeros(3))

    def test_bad_position_shape(self):
        with pytest.raises(ValueError, match="3-component"):
            BlackHole(mass=1.0, position=[0.0, 0.0])

    def test_distance_to_point(self):
        bh = BlackHole(mass=1.0, position=[1.0, 0.0, 0.0])
        assert jnp.isclose(bh.distance_to_point([4.0, 4.0, 0.0]), 5.0)

    def test_field_strength(self, schwarzschild_hole):
        assert jnp.isclose(schwarzschild_hole.field_strength_at_distance(2.0), 0.25)
        assert jnp.isinf(schwarzschild_hole.field_strength_at_distance(0.0))

    def test_default_black_hole(self):
        bh = default_black_hole()
        assert float(bh.mass) == 1.0
        assert float(bh.spin) == 0.0
        assert jnp.isclose(bh.schwarzschild_radius, 2.0)

    def test_is_schwarzschild(self, schwarzschild_hole, kerr_hole):
        assert schwarzschild_hole.is_schwarzschild()
        assert not kerr_hole.is_schwarzschild()
        assert kerr_hole.is_schwarzschild(threshold=0.6)

    def test_jit_parameter_change(self):
        """Mass and spin are dynamic leaves: one compiled function, new values."""
        horizon = jax.jit(lambda bh: bh.outer_horizon)
        assert jnp.isclose(horizon(BlackHole(1.0, 0.0)), 2.0)
        assert jnp.isclose(horizon(BlackHole(3.0, 0.0)), 6.0)
