"""Initial conditions: camera-space rays to spacetime states.

A camera ray (origin, direction) is converted to spherical coordinates
about the black hole's center:

    r     = |origin - center|
    theta = acos(z / r)
    phi   = atan2(y, x)

giving position (0, r, theta, phi) and momentum (1, d_x, d_y, d_z), with the
direction components taken as-is (unnormalized, not projected onto the
null cone).  :func:`normalize_null_momentum` optionally replaces the
temporal component so that g_ab k^a k^b = 0.

At r = 0 the polar angle is NaN; it is not guarded.
"""
from __future__ import annotations

import jax.numpy as jnp
from jaxtyping import ArrayLike

from ..spacetime.black_hole import BlackHole
from ..spacetime.metric import metric_components
from .state import GeodesicState


def camera_to_spacetime(
    origin: ArrayLike,
    direction: ArrayLike,
    black_hole: BlackHole | None = None,
) -> GeodesicState:
    """Convert a camera-space ray into an initial spacetime state.

    Parameters
    ----------
    origin : array-like of shape (3,)
        Ray origin in world space.
    direction : array-like of shape (3,)
        Ray direction; need not be normalized.
    black_hole : BlackHole or None
        If given, the origin is taken relative to its center.

    Returns
    -------
    GeodesicState
        Position (0, r, theta, phi) and momentum (1, d_x, d_y, d_z).

    Raises
    ------
    ValueError
        If *origin* or *direction* does not have 3 components.
    """
    origin = jnp.asarray(origin, dtype=jnp.float64)
    direction = jnp.asarray(direction, dtype=jnp.float64)
    if origin.shape != (3,) or direction.shape != (3,):
        raise ValueError(
            "origin and direction must both have shape (3,), got "
            f"{origin.shape} and {direction.shape}"
        )
    if black_hole is not None:
        origin = origin - black_hole.position

    x, y, z = origin
    r = jnp.sqrt(x * x + y * y + z * z)
    theta = jnp.arccos(z / r)
    phi = jnp.arctan2(y, x)

    position = jnp.stack([jnp.zeros(()), r, theta, phi])
    momentum = jnp.concatenate([jnp.ones(1), direction])
    return GeodesicState(position, momentum)


def normalize_null_momentum(
    state: GeodesicState,
    black_hole: BlackHole,
) -> GeodesicState:
    """Solve g_ab k^a k^b = 0 for the temporal component k^t.

    The spatial components are kept as-is.  The constraint is a quadratic
    in k^t:

        g_tt (k^t)^2 + 2 g_ti k^t k^i + g_ij k^i k^j = 0

    and the future-directed (positive for g_tt < 0) root is taken.  Returns
    NaN for k^t if no real root exists (e.g. inside the ergosphere for
    some directions).
    """
    r, theta = state.position[1], state.position[2]
    g = metric_components(r, theta, black_hole)
    k_spatial = state.momentum[1:]

    a = g[0, 0]
    b = 2.0 * jnp.dot(g[0, 1:], k_spatial)
    c = jnp.einsum("ij,i,j->", g[1:, 1:], k_spatial, k_spatial)

    disc = b**2 - 4.0 * a * c
    sqrt_disc = jnp.sqrt(jnp.maximum(disc, 0.0))
    k_t = (-b - sqrt_disc) / (2.0 * a)
    k_t = jnp.where(disc >= 0.0, k_t, jnp.nan)

    momentum = jnp.concatenate([jnp.array([k_t]), k_spatial])
    return GeodesicState(state.position, momentum)
