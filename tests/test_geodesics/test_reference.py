"""Cross-validation of ray sessions against Diffrax reference trajectories."""

import numpy as np

from kerrtrace.geodesics import (
    RaySession,
    TraceConfig,
    integrate_reference,
)
from kerrtrace.spacetime import BlackHole


class TestSessionMatchesReference:
    """Ray sessions against Diffrax Tsit5 over the same affine interval."""

    def test_schwarzschild_rk4(self, schwarzschild_hole):
        """Fixed-step RK4 (h = 0.01) tracks Tsit5 closely over 100 steps."""
        config = TraceConfig(max_steps=100)
        session = RaySession.from_camera(
            [10.0, 0.0, 1.0], [-1.0, 0.05, 0.02], schwarzschild_hole, config
        )
        initial = session.state
        while session.step():
            pass

        ref = integrate_reference(
            session.model, initial, (0.0, session.affine_parameter), num_points=2
        )
        np.testing.assert_allclose(ref.positions[-1], session.state.position, atol=1e-7)
        np.testing.assert_allclose(ref.momenta[-1], session.state.momentum, atol=1e-7)

    def test_kerr_rkf45(self, kerr_hole):
        """Adaptive RKF45 agrees with Tsit5 to within its tolerances."""
        config = TraceConfig(max_steps=15)
        session = RaySession.from_camera([10.0, 0.0, 1.0], [0.0, 1.0, 0.3], kerr_hole, config)
        initial = session.state
        while session.step():
            pass
        assert session.step_count == 15

        ref = integrate_reference(
            session.model, initial, (0.0, session.affine_parameter), num_points=2
        )
        np.testing.assert_allclose(
            ref.positions[-1], session.state.position, rtol=1e-4, atol=1e-4
        )


class TestReferenceEvents:
    """Capture and escape event termination."""

    def test_escape_event_fires(self):
        bh = BlackHole(mass=1.0, spin=0.5)
        session = RaySession.from_camera([10.0, 0.0, 0.0], [0.0, 1.0, 0.0], bh)
        ref = integrate_reference(
            session.model, session.state, (0.0, 1000.0), escape_factor=100.0
        )
        assert bool(ref.event_mask[1])
        assert not bool(ref.event_mask[0])
