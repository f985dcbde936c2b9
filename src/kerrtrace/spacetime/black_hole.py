"""Black-hole physical parameters and derived radii.

A ``BlackHole`` is an immutable Equinox module holding mass *M*, spin *a*
(Kerr parameter, same units as *M*) and the world-space position of its
center.  All horizon, ergosphere and ISCO radii are derived on demand.

Being an ``eqx.Module``, the parameters are dynamic pytree leaves, so jitted
kernels closing over a ``BlackHole`` are reused when only *M* or *a* change.
"""

from __future__ import annotations

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, ArrayLike, Float


class BlackHole(eqx.Module):
    """Kerr black hole of mass *M* and spin *a*.

    Parameters
    ----------
    mass : float
        Mass parameter *M*.  Not validated; *M* > 0 is assumed.
    spin : float
        Kerr spin parameter *a*.  Silently clamped to ``[-M, M]``.
    position : array-like of shape (3,)
        World-space center of the hole (default: origin).
    """

    mass: Float[Array, ""]
    spin: Float[Array, ""]
    position: Float[Array, "3"]

    def __init__(
        self,
        mass: float | ArrayLike = 1.0,
        spin: float | ArrayLike = 0.0,
        position: ArrayLike | None = None,
    ) -> None:
        mass = jnp.asarray(mass, dtype=jnp.float64)
        self.mass = mass
        self.spin = jnp.clip(jnp.asarray(spin, dtype=jnp.float64), -mass, mass)
        if position is None:
            position = jnp.zeros(3)
        position = jnp.asarray(position, dtype=jnp.float64)
        if position.shape != (3,):
            raise ValueError(
                f"Expected a 3-component position, got shape {position.shape}"
            )
        self.position = position

    @classmethod
    def from_spin_parameter(
        cls,
        mass: float,
        spin_parameter: float,
        position: ArrayLike | None = None,
    ) -> BlackHole:
        """Build from the dimensionless spin chi = a / M (so a = chi * M)."""
        return cls(mass, spin_parameter * mass, position)

    # derived radii -------------------------------------------------------

    @property
    def schwarzschild_radius(self) -> Float[Array, ""]:
        """r_s = 2M."""
        return 2.0 * self.mass

    @property
    def spin_parameter(self) -> Float[Array, ""]:
        """Dimensionless spin chi = a / M."""
        return self.spin / self.mass

    @property
    def outer_horizon(self) -> Float[Array, ""]:
        """Event horizon r_+ = M + sqrt(M^2 - a^2)."""
        return self.mass + self._horizon_offset()

    @property
    def inner_horizon(self) -> Float[Array, ""]:
        """Cauchy horizon r_- = M - sqrt(M^2 - a^2)."""
        return self.mass - self._horizon_offset()

    def _horizon_offset(self) -> Float[Array, ""]:
        # Clamping keeps |a| <= M, the max() only absorbs rounding.
        return jnp.sqrt(jnp.maximum(self.mass**2 - self.spin**2, 0.0))

    def ergosphere_radius(self, theta: float | ArrayLike) -> Float[Array, "..."]:
        """Outer boundary of the ergosphere, M + sqrt(M^2 - a^2 cos^2(theta))."""
        cos_th = jnp.cos(theta)
        return self.mass + jnp.sqrt(
            jnp.maximum(self.mass**2 - self.spin**2 * cos_th**2, 0.0)
        )

    def isco_radius(self, prograde: bool = True) -> Float[Array, ""]:
        """Innermost stable circular orbit (Bardeen, Press & Teukolsky 1972).

        .. math::

            Z_1 &= 1 + (1 - \\chi^2)^{1/3}
                   \\left[(1 + \\chi)^{1/3} + (1 - \\chi)^{1/3}\\right] \\\\
            Z_2 &= \\sqrt{3\\chi^2 + Z_1^2} \\\\
            r_{isco} &= M\\left(3 + Z_2 \\mp
                        \\sqrt{(3 - Z_1)(3 + Z_1 + 2 Z_2)}\\right)

        with the upper sign for orbits co-rotating with the hole.  Reduces
        to 6M for a = 0.

        Parameters
        ----------
        prograde : bool
            Co-rotating (True, default) or counter-rotating orbit.
        """
        chi = jnp.abs(self.spin) / self.mass
        z1 = 1.0 + jnp.cbrt(1.0 - chi**2) * (
            jnp.cbrt(1.0 + chi) + jnp.cbrt(1.0 - chi)
        )
        z2 = jnp.sqrt(3.0 * chi**2 + z1**2)
        root = jnp.sqrt(jnp.maximum((3.0 - z1) * (3.0 + z1 + 2.0 * z2), 0.0))
        sign = -1.0 if prograde else 1.0
        return self.mass * (3.0 + z2 + sign * root)

    # predicates and helpers ----------------------------------------------

    def is_schwarzschild(self, threshold: float = 0.0) -> bool:
        """True when |a| <= *threshold* (non-rotating within tolerance)."""
        return bool(jnp.abs(self.spin) <= threshold)

    def distance_to_point(self, point: ArrayLike) -> Float[Array, ""]:
        """Euclidean distance from the hole's center to a world-space point."""
        return jnp.linalg.norm(jnp.asarray(point, dtype=jnp.float64) - self.position)

    def field_strength_at_distance(
        self, distance: float | ArrayLike
    ) -> Float[Array, "..."]:
        """Newtonian field strength M / d^2 (infinite for d <= 0)."""
        distance = jnp.asarray(distance, dtype=jnp.float64)
        safe = jnp.where(distance > 0.0, distance, 1.0)
        return jnp.where(distance > 0.0, self.mass / safe**2, jnp.inf)


def default_black_hole() -> BlackHole:
    """Non-rotating, unit-mass hole at the origin."""
    return BlackHole(mass=1.0, spin=0.0)
