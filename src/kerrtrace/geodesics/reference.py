"""Reference trajectories via Diffrax, for validating ray sessions.

Integrates the same vector field a ``GeodesicModel`` uses with Diffrax's
Tsit5 solver and PID step-size control at tight tolerances, with optional
event termination at the capture and escape radii (optimistix Newton root
finder, as for any Diffrax event).  Ray sessions stepping with RK4/RKF45
should agree with this to within their own tolerances.
"""
from __future__ import annotations

from typing import NamedTuple

import diffrax
import jax.numpy as jnp
import optimistix as optx
from jaxtyping import Array, Float

from .derivatives import kerr_vector_field, schwarzschild_vector_field
from .session import GeodesicModel, KerrModel
from .state import GeodesicState


class ReferenceResult(NamedTuple):
    """Diffrax solution of one ray.

    Attributes
    ----------
    ts : Float[Array, "N"]
        Saved affine parameter values.
    positions : Float[Array, "N 4"]
        Coordinates at each saved point.
    momenta : Float[Array, "N 4"]
        Momenta at each saved point.
    result : diffrax.RESULTS
        Diffrax result code.
    event_mask : list of Array or None
        Per-event flags ``[captured, escaped]`` when events were requested.
    """

    ts: Float[Array, "N"]
    positions: Float[Array, "N 4"]
    momenta: Float[Array, "N 4"]
    result: diffrax.RESULTS
    event_mask: list[Array] | None


def capture_event(t, y, args, **kwargs) -> Float[Array, ""]:
    """Crosses zero when r reaches ``capture_radius`` from above."""
    return y[1] - kwargs.get("capture_radius", 2.0)


def escape_event(t, y, args, **kwargs) -> Float[Array, ""]:
    """Crosses zero when r exceeds ``escape_radius``."""
    return kwargs.get("escape_radius", 100.0) - y[1]


def make_termination_event(
    capture_radius: float, escape_radius: float
) -> diffrax.Event:
    """Capture and escape events bound to the given radii."""

    def captured(t, y, args, **kwargs):
        return capture_event(t, y, args, capture_radius=capture_radius)

    def escaped(t, y, args, **kwargs):
        return escape_event(t, y, args, escape_radius=escape_radius)

    root_finder = optx.Newton(rtol=1e-8, atol=1e-8)
    return diffrax.Event(cond_fn=[captured, escaped], root_finder=root_finder)


def integrate_reference(
    model: GeodesicModel,
    state: GeodesicState,
    lam_span: tuple[float, float],
    *,
    num_points: int = 200,
    dt0: float = 0.01,
    rtol: float = 1e-10,
    atol: float = 1e-10,
    max_steps: int = 16384,
    escape_factor: float | None = None,
) -> ReferenceResult:
    """Integrate *state* under *model*'s vector field with Diffrax Tsit5.

    Parameters
    ----------
    model : GeodesicModel
        Supplies the vector field (Schwarzschild or Kerr) and its args.
    state : GeodesicState
        Initial state.
    lam_span : tuple[float, float]
        Affine parameter interval.
    num_points : int
        Number of equally spaced save points (default 200).
    dt0 : float
        Initial step (default 0.01).
    rtol, atol : float
        PID controller tolerances (default 1e-10).
    max_steps : int
        Diffrax step budget (default 16384).
    escape_factor : float or None
        If given, stop at the capture radius or at r = escape_factor * M.

    Returns
    -------
    ReferenceResult
    """
    if isinstance(model, KerrModel):
        term = diffrax.ODETerm(kerr_vector_field)
        args = model.args
    else:
        term = diffrax.ODETerm(schwarzschild_vector_field)
        args = model.black_hole

    event = None
    if escape_factor is not None:
        event = make_termination_event(
            model.capture_radius(),
            escape_factor * float(model.black_hole.mass),
        )

    save_ts = jnp.linspace(lam_span[0], lam_span[1], num_points)
    sol = diffrax.diffeqsolve(
        term,
        diffrax.Tsit5(),
        t0=lam_span[0],
        t1=lam_span[1],
        dt0=dt0,
        y0=state.to_vector(),
        args=args,
        saveat=diffrax.SaveAt(ts=save_ts),
        stepsize_controller=diffrax.PIDController(rtol=rtol, atol=atol),
        max_steps=max_steps,
        throw=False,
        event=event,
    )

    return ReferenceResult(
        ts=sol.ts,
        positions=sol.ys[:, :4],
        momenta=sol.ys[:, 4:],
        result=sol.result,
        event_mask=sol.event_mask,
    )
