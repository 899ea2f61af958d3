"""Classic fixed-step 4th-order Runge-Kutta integrator.

Four stages per step, local truncation error :math:`O(h^5)`.  The usual
choice for propagating an augmented state at a fixed filter cadence.
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.config import get_dtype
from astrostm.integrators._types import StepResult


def rk4_step(
    dynamics: Callable[[ArrayLike, ArrayLike], Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
) -> StepResult:
    """Advance *state* from ``t`` to ``t + dt`` with one RK4 step.

    Args:
        dynamics: Right-hand side ``f(t, x) -> dx/dt``, e.g. a
            :class:`~astrostm.dynamics.StmDynamics`.
        t: Current time [s].
        state: Current state vector.
        dt: Step [s].  Negative for backward propagation.

    Returns:
        StepResult: New state, with ``dt_used = dt_next = dt`` and a zero
        error estimate.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.integrators import rk4_step
        def harmonic(t, x):
            return jnp.array([x[1], -x[0]])
        result = rk4_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.01)
        ```
    """
    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    state = jnp.asarray(state, dtype=dtype)
    dt = jnp.asarray(dt, dtype=dtype)

    k1 = dynamics(t, state)
    k2 = dynamics(t + 0.5 * dt, state + 0.5 * dt * k1)
    k3 = dynamics(t + 0.5 * dt, state + 0.5 * dt * k2)
    k4 = dynamics(t + dt, state + dt * k3)

    state_new = state + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

    return StepResult(
        state=state_new,
        dt_used=dt,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=dt,
    )
