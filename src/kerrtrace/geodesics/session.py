"""Ray sessions: the per-ray stepping state machine.

A ``RaySession`` owns one ray's mutable state (current geodesic state, step
size, step count, status) and advances it through a ``GeodesicModel``.  The
two model variants differ only in their vector field, stepper and capture
radius:

==================  =========================  ========  ==============
model               vector field               stepper   capture radius
==================  =========================  ========  ==============
SchwarzschildModel  schwarzschild_vector_field RK4       2M
KerrModel           kerr_vector_field          RKF45     r_+
==================  =========================  ========  ==============

State machine, evaluated at the top of every :meth:`RaySession.step`::

    step_count >= max_steps       -> MAX_STEPS_REACHED   (stop)
    r <= capture radius           -> CAPTURED            (stop)
    step fails / non-finite state -> DIVERGED            (stop)
    otherwise                     -> TRACING             (continue)

Escape (r > escape_factor * M) is not checked by ``step``; callers poll
:meth:`RaySession.has_escaped`, and :func:`trace_ray` records it as
``ESCAPED``.

Sessions share nothing, so independent rays may be traced concurrently as
long as each session is owned by a single worker.
"""
from __future__ import annotations

import enum
import logging
from abc import abstractmethod
from typing import NamedTuple, Sequence

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, ArrayLike, Float

from ..spacetime.black_hole import BlackHole
from .conserved import ConservedQuantities, conserved_quantities
from .derivatives import KerrArgs, kerr_vector_field, schwarzschild_vector_field
from .initial_conditions import camera_to_spacetime, normalize_null_momentum
from .integrator import IntegratorConfig, StepResult, rk4_step, rkf45_step
from .state import GeodesicState

logger = logging.getLogger(__name__)


class RayStatus(enum.Enum):
    """Lifecycle of a ray session.  Everything but TRACING is terminal."""

    TRACING = "tracing"
    CAPTURED = "captured"
    MAX_STEPS_REACHED = "max_steps_reached"
    ESCAPED = "escaped"
    DIVERGED = "diverged"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TraceConfig(eqx.Module):
    """Per-invocation tracing parameters.

    Parameters
    ----------
    initial_step : float
        Starting step size; fixed for RK4, a first guess for RKF45
        (default 0.01).
    max_steps : int
        Step budget per ray (default 10000).
    escape_factor : float
        A ray has escaped once r > escape_factor * M (default 100).
    normalize_momentum : bool
        Enforce the null constraint on the initial momentum (default False,
        keeping the direction components as-is).
    spin_threshold : float
        Holes with |a| <= spin_threshold use the Schwarzschild model
        (default 0.0).
    integrator : IntegratorConfig
        Adaptive stepper settings.
    """

    initial_step: float = eqx.field(static=True, default=0.01)
    max_steps: int = eqx.field(static=True, default=10_000)
    escape_factor: float = eqx.field(static=True, default=100.0)
    normalize_momentum: bool = eqx.field(static=True, default=False)
    spin_threshold: float = eqx.field(static=True, default=0.0)
    integrator: IntegratorConfig = eqx.field(
        static=True, default_factory=IntegratorConfig
    )

    def __check_init__(self) -> None:
        if self.initial_step <= 0.0:
            raise ValueError(f"initial_step must be positive, got {self.initial_step}")
        if self.max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {self.max_steps}")
        if self.escape_factor <= 0.0:
            raise ValueError(
                f"escape_factor must be positive, got {self.escape_factor}"
            )


# ---------------------------------------------------------------------------
# Geodesic models
# ---------------------------------------------------------------------------


class GeodesicModel(eqx.Module):
    """Abstract base for the physics driving a ray session."""

    black_hole: BlackHole

    @abstractmethod
    def capture_radius(self) -> float:
        """Radius at or below which the ray counts as captured."""
        ...

    @abstractmethod
    def advance(
        self,
        state: GeodesicState,
        step_size: float,
        config: IntegratorConfig,
        lam: float = 0.0,
    ) -> StepResult:
        """Take one integration step from *state*."""
        ...

    @abstractmethod
    def name(self) -> str:
        ...


class SchwarzschildModel(GeodesicModel):
    """Approximate Christoffel model with fixed-step RK4."""

    def capture_radius(self) -> float:
        return float(self.black_hole.schwarzschild_radius)

    def advance(
        self,
        state: GeodesicState,
        step_size: float,
        config: IntegratorConfig,
        lam: float = 0.0,
    ) -> StepResult:
        y = rk4_step(
            schwarzschild_vector_field,
            state.to_vector(),
            step_size,
            self.black_hole,
            lam=lam,
        )
        converged = bool(jnp.all(jnp.isfinite(y)))
        if not converged:
            y = state.to_vector()
        return StepResult(y, step_size, step_size, converged, 1)

    def name(self) -> str:
        return "Schwarzschild"


class KerrModel(GeodesicModel):
    """Conserved-quantity model with adaptive RKF45.

    Parameters
    ----------
    black_hole : BlackHole
        Mass and spin.
    conserved : ConservedQuantities
        (E, L_z, Q), fixed for the life of the ray.
    radial_sign, polar_sign : float
        Branches of the radial and polar roots (default +1).  They are
        not flipped at turning points.
    """

    conserved: ConservedQuantities
    radial_sign: float = eqx.field(static=True, default=1.0)
    polar_sign: float = eqx.field(static=True, default=1.0)

    @classmethod
    def from_state(
        cls,
        black_hole: BlackHole,
        state: GeodesicState,
        radial_sign: float = 1.0,
        polar_sign: float = 1.0,
    ) -> KerrModel:
        """Evaluate the constants of motion at *state* and build the model."""
        conserved = conserved_quantities(state.position, state.momentum, black_hole)
        return cls(black_hole, conserved, radial_sign, polar_sign)

    @property
    def args(self) -> KerrArgs:
        return KerrArgs(
            self.black_hole, self.conserved, self.radial_sign, self.polar_sign
        )

    def capture_radius(self) -> float:
        return float(self.black_hole.outer_horizon)

    def advance(
        self,
        state: GeodesicState,
        step_size: float,
        config: IntegratorConfig,
        lam: float = 0.0,
    ) -> StepResult:
        return rkf45_step(
            kerr_vector_field,
            state.to_vector(),
            step_size,
            self.args,
            config=config,
            lam=lam,
        )

    def name(self) -> str:
        return "Kerr"


def select_model(
    black_hole: BlackHole,
    state: GeodesicState,
    spin_threshold: float = 0.0,
) -> GeodesicModel:
    """Pick the Schwarzschild model for |a| <= *spin_threshold*, else Kerr."""
    if black_hole.is_schwarzschild(spin_threshold):
        model: GeodesicModel = SchwarzschildModel(black_hole)
    else:
        model = KerrModel.from_state(black_hole, state)
    logger.debug(
        "Selected %s model (M=%s, a=%s)",
        model.name(), float(black_hole.mass), float(black_hole.spin),
    )
    return model


# ---------------------------------------------------------------------------
# Ray session
# ---------------------------------------------------------------------------


class RaySession:
    """Mutable tracing state of a single ray.

    Plain Python class (not an ``eqx.Module``): it is the orchestration
    layer around the compiled kernels and is never traced by JAX.

    Parameters
    ----------
    state : GeodesicState
        Initial spacetime state.
    black_hole : BlackHole
        The hole being traced around.
    config : TraceConfig or None
        Tracing parameters (default ``TraceConfig()``).
    model : GeodesicModel or None
        Explicit model; selected from the spin when omitted.
    """

    def __init__(
        self,
        state: GeodesicState,
        black_hole: BlackHole,
        config: TraceConfig | None = None,
        model: GeodesicModel | None = None,
    ) -> None:
        self.config = config if config is not None else TraceConfig()
        self.black_hole = black_hole
        self.state = state
        self.model = (
            model
            if model is not None
            else select_model(black_hole, state, self.config.spin_threshold)
        )
        self.step_size = self.config.initial_step
        self.max_steps = self.config.max_steps
        self.step_count = 0
        self.affine_parameter = 0.0
        self.status = RayStatus.TRACING

    @classmethod
    def from_camera(
        cls,
        origin: ArrayLike,
        direction: ArrayLike,
        black_hole: BlackHole,
        config: TraceConfig | None = None,
    ) -> RaySession:
        """Start a session from a camera-space ray."""
        config = config if config is not None else TraceConfig()
        state = camera_to_spacetime(origin, direction, black_hole)
        if config.normalize_momentum:
            state = normalize_null_momentum(state, black_hole)
        return cls(state, black_hole, config)

    # queries -------------------------------------------------------------

    def radius(self) -> float:
        return float(self.state.radius())

    def has_escaped(self) -> bool:
        """True once r > escape_factor * M."""
        return self.radius() > self.config.escape_factor * float(self.black_hole.mass)

    @property
    def is_terminated(self) -> bool:
        return self.status is not RayStatus.TRACING

    # transitions ---------------------------------------------------------

    def step(self) -> bool:
        """Advance one step.  Returns True to continue, False to stop."""
        if self.is_terminated:
            return False

        if self.step_count >= self.max_steps:
            return self._terminate(RayStatus.MAX_STEPS_REACHED)

        if self.radius() <= self.model.capture_radius():
            return self._terminate(RayStatus.CAPTURED)

        result = self.model.advance(
            self.state, self.step_size, self.config.integrator, self.affine_parameter
        )
        if not result.converged:
            return self._terminate(RayStatus.DIVERGED)

        self.state = GeodesicState.from_vector(result.y)
        self.affine_parameter += result.step_used
        self.step_size = result.next_step
        self.step_count += 1
        return True

    def mark_escaped(self) -> None:
        """Record a caller-detected escape.  No-op once terminated."""
        if not self.is_terminated:
            self._terminate(RayStatus.ESCAPED)

    def _terminate(self, status: RayStatus) -> bool:
        self.status = status
        logger.debug(
            "Ray terminated: %s after %d steps at r=%.6g",
            status.value, self.step_count, self.radius(),
        )
        return False


# ---------------------------------------------------------------------------
# Drivers
# ---------------------------------------------------------------------------


class TraceResult(NamedTuple):
    """Outcome of tracing one ray to termination.

    Attributes
    ----------
    status : RayStatus
        Terminal status.
    state : GeodesicState
        Final spacetime state.
    step_count : int
        Accepted steps taken.
    affine_parameter : float
        Total affine parameter covered.
    positions : Float[Array, "N 4"] or None
        Recorded positions (initial state included), if requested.
    momenta : Float[Array, "N 4"] or None
        Recorded momenta, if requested.
    """

    status: RayStatus
    state: GeodesicState
    step_count: int
    affine_parameter: float
    positions: Float[Array, "N 4"] | None
    momenta: Float[Array, "N 4"] | None


def run_session(session: RaySession, record: bool = False) -> TraceResult:
    """Step *session* until it stops or escapes."""
    positions = [session.state.position] if record else None
    momenta = [session.state.momentum] if record else None

    if session.has_escaped():
        session.mark_escaped()
    while session.step():
        if record:
            positions.append(session.state.position)
            momenta.append(session.state.momentum)
        if session.has_escaped():
            session.mark_escaped()
            break

    return TraceResult(
        status=session.status,
        state=session.state,
        step_count=session.step_count,
        affine_parameter=session.affine_parameter,
        positions=jnp.stack(positions) if record else None,
        momenta=jnp.stack(momenta) if record else None,
    )


def trace_ray(
    origin: ArrayLike,
    direction: ArrayLike,
    black_hole: BlackHole,
    config: TraceConfig | None = None,
    record: bool = False,
) -> TraceResult:
    """Trace a single camera ray to termination.

    Parameters
    ----------
    origin, direction : array-like of shape (3,)
        Camera-space ray.
    black_hole : BlackHole
        The hole.
    config : TraceConfig or None
        Tracing parameters.
    record : bool
        Keep the full trajectory in the result.

    Returns
    -------
    TraceResult
    """
    session = RaySession.from_camera(origin, direction, black_hole, config)
    return run_session(session, record=record)


def trace_rays(
    origins: Sequence[ArrayLike] | ArrayLike,
    directions: Sequence[ArrayLike] | ArrayLike,
    black_hole: BlackHole,
    config: TraceConfig | None = None,
) -> list[TraceResult]:
    """Trace a batch of independent rays, one session per ray.

    Raises
    ------
    ValueError
        If the number of origins and directions differ.
    """
    if len(origins) != len(directions):
        raise ValueError(
            f"Got {len(origins)} origins but {len(directions)} directions"
        )
    return [
        trace_ray(origin, direction, black_hole, config)
        for origin, direction in zip(origins, directions)
    ]
