"""Propagation driver for augmented trajectory + STM states.

:func:`propagate_stm` steps a :class:`~astrostm.dynamics.StmDynamics`
between two times with one of the astrostm integrators and returns the
final Cartesian state and STM, the quantities a filter consumes for its
time update.  The step function is compiled once per call with
``jax.jit``; the stepping loop itself runs in Python so the final step
can be shortened to land exactly on the requested time.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.config import get_dtype
from astrostm.dynamics import (
    STATE_DIM,
    StmDynamics,
    augment_state,
    augmented_size,
    extract_state,
    extract_stm,
    infer_n_agents,
)
from astrostm.integrators import AdaptiveConfig, dp54_step, rk4_step

logger = logging.getLogger(__name__)

_METHODS = ("rk4", "dp54")


class PropagationResult(NamedTuple):
    """Output of :func:`propagate_stm`.

    Attributes:
        t: Final time [s].
        state: Final Cartesian state ``[r, v]``, shape ``(6,)``.
        stm: Final state transition matrix, shape ``(N, N)``.
        jacobian: Jacobian ``A`` evaluated at the final state, shape
            ``(N, N)``.
        times: Times of all accepted steps including the start, shape
            ``(K,)``.
        states: Augmented states at ``times``, shape ``(K, 6 + N*N)``.
    """

    t: Array
    state: Array
    stm: Array
    jacobian: Array
    times: Array
    states: Array


def propagate_stm(
    dynamics: StmDynamics,
    t0: float,
    state: ArrayLike,
    t1: float,
    dt: float,
    method: str = "rk4",
    config: AdaptiveConfig | None = None,
) -> PropagationResult:
    """Propagate a state and its STM from *t0* to *t1*.

    Args:
        dynamics: Augmented-state dynamics.
        t0: Start time [s].
        state: Cartesian state ``[r, v]`` (an identity STM is appended) or
            a full augmented state of length ``6 + N*N``.
        t1: End time [s].  ``t1 < t0`` propagates backward.
        dt: Step magnitude [s]; the sign is taken from ``t1 - t0``.  For
            ``"dp54"`` this is the initial step.
        method: ``"rk4"`` (fixed step) or ``"dp54"`` (adaptive).
        config: Adaptive settings for ``"dp54"``.  Defaults to
            ``AdaptiveConfig(error_dims=6)`` so only the trajectory drives
            the step size.

    Returns:
        PropagationResult: Final time, state, STM and Jacobian plus the
        step history.

    Raises:
        ValueError: If *dt* is zero, *method* is unknown, or *state* is not
            a 6-state or an augmented state of length ``6 + N*N`` for the
            dynamics' ``N``.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.agents import CARTESIAN_AGENTS
        from astrostm.dynamics import StmDynamics
        from astrostm.force_models import GravityJ2, Kinematics
        from astrostm.propagation import propagate_stm
        dynamics = StmDynamics([Kinematics(), GravityJ2.earth()], CARTESIAN_AGENTS)
        x0 = jnp.array([6878e3, 0.0, 0.0, 0.0, 7612.0, 0.0])
        result = propagate_stm(dynamics, 0.0, x0, 600.0, 60.0)
        result.stm.shape  # (6, 6)
        ```
    """
    if dt == 0.0:
        raise ValueError("dt must be non-zero")
    if method not in _METHODS:
        raise ValueError(f"method must be one of {_METHODS}, got '{method}'")

    n = dynamics.n_agents
    dtype = get_dtype()
    x = jnp.asarray(state, dtype=dtype)
    if x.ndim != 1:
        raise ValueError(f"state must be one-dimensional, got shape {x.shape}")
    if x.shape == (STATE_DIM,):
        x = augment_state(x, n)
    elif infer_n_agents(x.shape[0]) != n:
        raise ValueError(
            f"state must have length {STATE_DIM} or {augmented_size(n)} "
            f"for {n} active agents, got shape {x.shape}"
        )

    if method == "dp54":
        if config is None:
            config = AdaptiveConfig(error_dims=STATE_DIM)
        step = jax.jit(lambda t, z, h: dp54_step(dynamics, t, z, h, config))
    else:
        step = jax.jit(lambda t, z, h: rk4_step(dynamics, t, z, h))

    t0 = float(t0)
    t1 = float(t1)
    direction = 1.0 if t1 >= t0 else -1.0
    h = direction * abs(float(dt))
    eps = 1e-12 * max(1.0, abs(t1 - t0))

    logger.debug(
        "Propagating %d-agent STM from t=%s to t=%s with %s (dt=%s)",
        n, t0, t1, method, dt,
    )

    t = t0
    times = [t0]
    states = [x]
    while direction * (t1 - t) > eps:
        remaining = t1 - t
        h_try = remaining if abs(h) > abs(remaining) else h
        result = step(t, x, h_try)

        x = result.state
        t = t + float(result.dt_used)
        if method == "dp54":
            h = float(result.dt_next)

        times.append(t)
        states.append(x)

    logger.info("Propagated STM to t=%s in %d steps", t, len(times) - 1)

    # Leave contributor caches holding concrete values for the final state.
    jacobian = dynamics.jacobian(x)

    return PropagationResult(
        t=jnp.asarray(t, dtype=dtype),
        state=extract_state(x),
        stm=extract_stm(x, n),
        jacobian=jacobian,
        times=jnp.asarray(times, dtype=dtype),
        states=jnp.stack(states),
    )
