"""Spacetime state of a photon: position and conjugate momentum.

The integrators and vector fields work on the flat state vector
y = [x^mu (4,), p^mu (4,)] of shape (8,); ``GeodesicState`` is the typed
view the ray session hands to callers.
"""
from __future__ import annotations

import equinox as eqx
import jax.numpy as jnp
from jaxtyping import Array, ArrayLike, Float


class GeodesicState(eqx.Module):
    """One point along a ray, parameterized by the affine parameter.

    Parameters
    ----------
    position : Float[Array, "4"]
        Coordinates ``(t, r, theta, phi)``.
    momentum : Float[Array, "4"]
        Conjugate momenta ``(p_t, p_r, p_theta, p_phi)``.
    """

    position: Float[Array, "4"]
    momentum: Float[Array, "4"]

    def __init__(self, position: ArrayLike, momentum: ArrayLike) -> None:
        self.position = jnp.asarray(position, dtype=jnp.float64)
        self.momentum = jnp.asarray(momentum, dtype=jnp.float64)

    def __check_init__(self) -> None:
        if self.position.shape != (4,) or self.momentum.shape != (4,):
            raise ValueError(
                "position and momentum must both have shape (4,), got "
                f"{self.position.shape} and {self.momentum.shape}"
            )

    @classmethod
    def from_vector(cls, y: Float[Array, "8"]) -> GeodesicState:
        """Split a flat state vector into position and momentum."""
        return cls(y[:4], y[4:])

    def to_vector(self) -> Float[Array, "8"]:
        """Flat state vector ``[x^mu, p^mu]``."""
        return jnp.concatenate([self.position, self.momentum])

    def radius(self) -> Float[Array, ""]:
        return self.position[1]

    def theta(self) -> Float[Array, ""]:
        return self.position[2]

    def is_finite(self) -> bool:
        """False if any component is NaN or infinite."""
        return bool(
            jnp.all(jnp.isfinite(self.position))
            & jnp.all(jnp.isfinite(self.momentum))
        )
