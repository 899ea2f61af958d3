"""Error norm and step-size prediction for embedded Runge-Kutta pairs."""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.config import get_dtype


def compute_error_norm(
    error_vec: ArrayLike,
    state_new: ArrayLike,
    state_old: ArrayLike,
    abs_tol: float,
    rel_tol: float,
    error_dims: int | None = None,
) -> Array:
    """Infinity norm of the local error scaled by mixed tolerances.

    Each component is divided by
    ``abs_tol + rel_tol * max(|state_new_i|, |state_old_i|)``; the step is
    acceptable when the result is <= 1.0.

    Args:
        error_vec: High-order minus low-order solution.
        state_new: High-order solution.
        state_old: State at the start of the step.
        abs_tol: Absolute tolerance.
        rel_tol: Relative tolerance.
        error_dims: Only the first *error_dims* components are measured.
            ``None`` measures all of them.

    Returns:
        jax.Array: Scalar normalized error.
    """
    dtype = get_dtype()
    sl = slice(None) if error_dims is None else slice(0, error_dims)
    error_vec = jnp.asarray(error_vec, dtype=dtype)[sl]
    state_new = jnp.asarray(state_new, dtype=dtype)[sl]
    state_old = jnp.asarray(state_old, dtype=dtype)[sl]

    scale = abs_tol + rel_tol * jnp.maximum(jnp.abs(state_new), jnp.abs(state_old))
    return jnp.max(jnp.abs(error_vec) / scale)


def compute_next_step_size(
    error: ArrayLike,
    h: ArrayLike,
    order: float,
    safety_factor: float,
    min_scale_factor: float,
    max_scale_factor: float,
    min_step: float,
    max_step: float,
) -> Array:
    """Predict the next step from the current normalized error.

    ``h_next = |h| * safety * error^(-1/(order+1))``, clipped to the scale
    and absolute bounds, with the sign of *h* kept so backward propagation
    stays backward.

    Returns:
        jax.Array: Suggested next step size.
    """
    dtype = get_dtype()
    error = jnp.asarray(error, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    exponent = 1.0 / (order + 1.0)
    raw_scale = jnp.where(error > 0.0, jnp.power(1.0 / error, exponent), max_scale_factor)
    scale = jnp.clip(safety_factor * raw_scale, min_scale_factor, max_scale_factor)

    abs_h_next = jnp.clip(jnp.abs(h) * scale, min_step, max_step)
    return jnp.sign(h) * abs_h_next
