"""Constants of motion of a photon in Kerr spacetime.

Photon motion in Kerr spacetime admits three constants of motion besides
the null norm:

    E   = -p_t                                    (energy)
    L_z = p_phi                                   (axial angular momentum)
    Q   = p_theta^2 + cos^2(theta) (a^2 (E^2 - 1) + L_z^2 / sin^2(theta))

They are evaluated once from the ray's initial state and then drive the
Kerr vector field.  No null-condition check is made on the input, so Q can
come out negative for non-physical momenta.
"""
from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, ArrayLike, Float, jaxtyped

from ..spacetime.black_hole import BlackHole


class ConservedQuantities(NamedTuple):
    """Energy, axial angular momentum and Carter constant of a ray.

    Attributes
    ----------
    energy : Float[Array, ""]
        E = -p_t.
    angular_momentum_z : Float[Array, ""]
        L_z = p_phi.
    carter_constant : Float[Array, ""]
        Carter's constant Q.
    """

    energy: Float[Array, ""]
    angular_momentum_z: Float[Array, ""]
    carter_constant: Float[Array, ""]


def conserved_quantities(
    position: ArrayLike,
    momentum: ArrayLike,
    black_hole: BlackHole,
) -> ConservedQuantities:
    """Evaluate (E, L_z, Q) at a single spacetime point.

    Parameters
    ----------
    position : array-like of shape (4,)
        Coordinates ``(t, r, theta, phi)``.
    momentum : array-like of shape (4,)
        Momenta ``(p_t, p_r, p_theta, p_phi)``.
    black_hole : BlackHole
        Supplies the spin *a*.

    Returns
    -------
    ConservedQuantities
    """
    return _conserved_quantities(
        jnp.asarray(position, dtype=jnp.float64),
        jnp.asarray(momentum, dtype=jnp.float64),
        black_hole,
    )


@jaxtyped(typechecker=beartype)
def _conserved_quantities(
    position: Float[Array, "4"],
    momentum: Float[Array, "4"],
    black_hole: BlackHole,
) -> ConservedQuantities:
    theta = position[2]
    a = black_hole.spin

    energy = -momentum[0]
    lz = momentum[3]
    cos2 = jnp.cos(theta) ** 2
    sin2 = jnp.sin(theta) ** 2
    carter = momentum[2] ** 2 + cos2 * (a**2 * (energy**2 - 1.0) + lz**2 / sin2)

    return ConservedQuantities(
        energy=energy,
        angular_momentum_z=lz,
        carter_constant=carter,
    )
