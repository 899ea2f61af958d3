"""Augmented state layout helpers.

An augmented state is ``[X, Y, Z, dX, dY, dZ, stm...]`` where the trailing
``N*N`` entries hold the state transition matrix in row-major order:
``stm[i, j] = state[6 + j + i * N]``.  Every function here uses that single
convention, so flattening and reshaping are exact inverses.
"""

from __future__ import annotations

import math

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.config import get_dtype

STATE_DIM = 6
"""Number of Cartesian components ahead of the STM block."""


def augmented_size(n_agents: int) -> int:
    """Length of an augmented state carrying an ``n_agents`` square STM."""
    return STATE_DIM + n_agents * n_agents


def infer_n_agents(size: int) -> int:
    """Recover ``N`` from the length of an augmented state.

    Raises:
        ValueError: If *size* is not ``6 + N*N`` for some ``N >= 0``.
    """
    n = math.isqrt(max(size - STATE_DIM, 0))
    if size < STATE_DIM or augmented_size(n) != size:
        raise ValueError(
            f"State of length {size} is not an augmented state of length 6 + N^2"
        )
    return n


def flatten_matrix(matrix: ArrayLike) -> Array:
    """Row-major flatten: ``out[j + i * N] = matrix[i, j]``."""
    return jnp.asarray(matrix, dtype=get_dtype()).reshape(-1)


def unflatten_matrix(buffer: ArrayLike, n: int) -> Array:
    """Inverse of :func:`flatten_matrix`: ``out[i, j] = buffer[j + i * n]``."""
    return jnp.asarray(buffer, dtype=get_dtype()).reshape(n, n)


def augment_state(state: ArrayLike, n_agents: int, stm: ArrayLike | None = None) -> Array:
    """Append an STM block to a Cartesian state.

    Args:
        state: Cartesian state ``[r, v]``, shape ``(6,)``.
        n_agents: Number of active agents ``N``.
        stm: Initial STM of shape ``(N, N)``.  Defaults to the identity.

    Returns:
        jax.Array: Augmented state of shape ``(6 + N*N,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.dynamics import augment_state
        x0 = jnp.array([6878e3, 0.0, 0.0, 0.0, 7612.0, 0.0])
        z0 = augment_state(x0, 6)
        z0.shape  # (42,)
        ```
    """
    dtype = get_dtype()
    x = jnp.asarray(state, dtype=dtype)[:STATE_DIM]
    if stm is None:
        stm = jnp.eye(n_agents, dtype=dtype)
    return jnp.concatenate([x, flatten_matrix(stm)])


def extract_state(state: ArrayLike) -> Array:
    """Cartesian part ``[r, v]`` of an augmented state."""
    return jnp.asarray(state, dtype=get_dtype())[:STATE_DIM]


def extract_stm(state: ArrayLike, n_agents: int) -> Array:
    """STM block of an augmented state as an ``(N, N)`` matrix."""
    x = jnp.asarray(state, dtype=get_dtype())
    return unflatten_matrix(x[STATE_DIM : augmented_size(n_agents)], n_agents)
