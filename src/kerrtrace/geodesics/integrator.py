"""Fixed-step RK4 and adaptive Runge-Kutta-Fehlberg 4(5) steppers.

Both steppers are generic: they advance any state array ``y`` given a
vector field ``f(lam, y, args) -> dy/dlam`` and know nothing about
geodesics.  The stage evaluations are compiled with ``eqx.filter_jit``
(the vector field is a static argument); the accept/reject loop of the
adaptive stepper runs in Python so its retry count is bounded and a
non-finite error ends the step instead of looping.

Adaptive step control (one call to :func:`rkf45_step`)::

    h     = clamp(h_requested, min_step, max_step)
    err   = max |y5 - y4|                      (L-infinity over all components)
    tol   = abs_tol + rel_tol * ||y_in||_2
    h_new = clamp(h * safety * (tol / max(err, 1e-14))**0.2, min_step, max_step)

    err <= tol  -> accept y5
    otherwise   -> retry with h_new, at most ``max_retries`` times
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, NamedTuple

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, ArrayLike, Float

logger = logging.getLogger(__name__)

VectorField = Callable[[Float[Array, ""], Float[Array, "..."], Any], Float[Array, "..."]]

# Floor on the error estimate when computing the step-size ratio.
_ERROR_FLOOR = 1e-14


# ---------------------------------------------------------------------------
# Configuration and result types
# ---------------------------------------------------------------------------


class IntegratorConfig(eqx.Module):
    """Tolerances and step-size bounds of the adaptive stepper.

    All fields are static metadata, so a config can be closed over inside
    compiled code without becoming a traced value.

    Parameters
    ----------
    abs_tol : float
        Absolute tolerance (default 1e-6).
    rel_tol : float
        Relative tolerance, scaled by the 2-norm of the input state
        (default 1e-6).
    min_step : float
        Smallest step the controller may use (default 1e-8).
    max_step : float
        Largest step the controller may use (default 1.0).
    safety_factor : float
        Multiplier on the optimal step estimate, in (0, 1] (default 0.9).
    max_retries : int
        Rejected attempts allowed before the step is reported as not
        converged (default 20).
    """

    abs_tol: float = eqx.field(static=True, default=1e-6)
    rel_tol: float = eqx.field(static=True, default=1e-6)
    min_step: float = eqx.field(static=True, default=1e-8)
    max_step: float = eqx.field(static=True, default=1.0)
    safety_factor: float = eqx.field(static=True, default=0.9)
    max_retries: int = eqx.field(static=True, default=20)

    def __check_init__(self) -> None:
        if self.abs_tol < 0.0 or self.rel_tol < 0.0:
            raise ValueError(
                f"Tolerances must be non-negative, got abs_tol={self.abs_tol}, "
                f"rel_tol={self.rel_tol}"
            )
        if self.abs_tol == 0.0 and self.rel_tol == 0.0:
            raise ValueError("At least one of abs_tol, rel_tol must be positive")
        if not 0.0 < self.min_step <= self.max_step:
            raise ValueError(
                f"Expected 0 < min_step <= max_step, got min_step={self.min_step}, "
                f"max_step={self.max_step}"
            )
        if not 0.0 < self.safety_factor <= 1.0:
            raise ValueError(
                f"safety_factor must lie in (0, 1], got {self.safety_factor}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def clamp(self, step_size: float) -> float:
        """Clamp a step size into ``[min_step, max_step]``."""
        return min(max(step_size, self.min_step), self.max_step)


class StepResult(NamedTuple):
    """Outcome of one adaptive step.

    Attributes
    ----------
    y : Array
        Accepted 5th-order state, or the unchanged input state when the
        step did not converge.
    step_used : float
        Step size of the last attempt.
    next_step : float
        Suggested step size for the next call.
    converged : bool
        False when the error was NaN/inf or the retries ran out.
    attempts : int
        Number of stage evaluations (1 if accepted first time).
    """

    y: Float[Array, "..."]
    step_used: float
    next_step: float
    converged: bool
    attempts: int


# ---------------------------------------------------------------------------
# Classical RK4
# ---------------------------------------------------------------------------


@eqx.filter_jit
def _rk4(
    vector_field: VectorField,
    lam: Float[Array, ""],
    y: Float[Array, "..."],
    h: Float[Array, ""],
    args: Any,
) -> Float[Array, "..."]:
    k1 = vector_field(lam, y, args)
    k2 = vector_field(lam + 0.5 * h, y + 0.5 * h * k1, args)
    k3 = vector_field(lam + 0.5 * h, y + 0.5 * h * k2, args)
    k4 = vector_field(lam + h, y + h * k3, args)
    return y + h * (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0


def rk4_step(
    vector_field: VectorField,
    y: ArrayLike,
    step_size: float,
    args: Any = None,
    lam: float = 0.0,
) -> Float[Array, "..."]:
    """Advance *y* by one classical Runge-Kutta step (weights 1, 2, 2, 1 / 6).

    Parameters
    ----------
    vector_field : callable
        ``f(lam, y, args) -> dy/dlam``.
    y : array-like
        Current state.
    step_size : float
        Fixed step h.
    args : object
        Passed through to *vector_field*.
    lam : float
        Current value of the independent variable.

    Returns
    -------
    Array
        State after one step.
    """
    return _rk4(
        vector_field,
        jnp.asarray(lam, dtype=jnp.float64),
        jnp.asarray(y, dtype=jnp.float64),
        jnp.asarray(step_size, dtype=jnp.float64),
        args,
    )


# ---------------------------------------------------------------------------
# Runge-Kutta-Fehlberg 4(5)
# ---------------------------------------------------------------------------

# Fehlberg (1969) tableau.
_C = (0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0)
_A = (
    (),
    (1.0 / 4.0,),
    (3.0 / 32.0, 9.0 / 32.0),
    (1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0),
    (439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0),
    (-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0),
)
_B4 = (25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0, -1.0 / 5.0, 0.0)
_B5 = (16.0 / 135.0, 0.0, 6656.0 / 12825.0, 28561.0 / 56430.0, -9.0 / 50.0, 2.0 / 55.0)


@eqx.filter_jit
def _rkf45_attempt(
    vector_field: VectorField,
    lam: Float[Array, ""],
    y: Float[Array, "..."],
    h: Float[Array, ""],
    args: Any,
) -> tuple[Float[Array, "..."], Float[Array, ""]]:
    """Six-stage evaluation; returns the 5th-order state and the L-inf error."""
    ks = []
    for c, row in zip(_C, _A):
        y_stage = y
        for a_ij, k in zip(row, ks):
            y_stage = y_stage + h * a_ij * k
        ks.append(vector_field(lam + c * h, y_stage, args))

    y4 = y + h * sum(b * k for b, k in zip(_B4, ks))
    y5 = y + h * sum(b * k for b, k in zip(_B5, ks))
    error = jnp.max(jnp.abs(y5 - y4))
    return y5, error


def rkf45_step(
    vector_field: VectorField,
    y: ArrayLike,
    step_size: float,
    args: Any = None,
    config: IntegratorConfig | None = None,
    lam: float = 0.0,
) -> StepResult:
    """Advance *y* by one accepted adaptive RKF45 step.

    Parameters
    ----------
    vector_field : callable
        ``f(lam, y, args) -> dy/dlam``.
    y : array-like
        Current state (any shape).
    step_size : float
        Requested step; clamped into ``[min_step, max_step]`` before use.
    args : object
        Passed through to *vector_field*.
    config : IntegratorConfig or None
        Tolerances and bounds (default ``IntegratorConfig()``).
    lam : float
        Current value of the independent variable.

    Returns
    -------
    StepResult
        Accepted state, the step actually used, the suggested next step,
        and whether the step converged.
    """
    if config is None:
        config = IntegratorConfig()
    y = jnp.asarray(y, dtype=jnp.float64)
    lam_arr = jnp.asarray(lam, dtype=jnp.float64)

    tolerance = config.abs_tol + config.rel_tol * float(jnp.linalg.norm(y))
    h = config.clamp(float(step_size))

    attempts = 0
    while True:
        attempts += 1
        y5, error = _rkf45_attempt(
            vector_field, lam_arr, y, jnp.asarray(h, dtype=jnp.float64), args
        )
        error = float(error)

        if not (math.isfinite(error) and math.isfinite(tolerance)):
            logger.warning(
                "Non-finite RKF45 error estimate (error=%s, tol=%s) at h=%.3e",
                error, tolerance, h,
            )
            return StepResult(y, h, h, False, attempts)

        ratio = tolerance / max(error, _ERROR_FLOOR)
        next_h = config.clamp(h * config.safety_factor * ratio**0.2)

        if error <= tolerance:
            return StepResult(y5, h, next_h, True, attempts)

        logger.debug(
            "Rejected RKF45 step h=%.3e (error=%.3e > tol=%.3e), retrying with %.3e",
            h, error, tolerance, next_h,
        )
        if attempts > config.max_retries or h <= config.min_step:
            break
        h = next_h

    logger.warning(
        "RKF45 step failed to converge after %d attempts (h=%.3e, error=%.3e, tol=%.3e)",
        attempts, h, error, tolerance,
    )
    return StepResult(y, h, h, False, attempts)
