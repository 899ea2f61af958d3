"""Dormand-Prince 5(4) adaptive integrator.

Seven-stage embedded pair: the 5th-order solution is propagated and the
difference to the 4th-order solution drives step-size control.  Rejected
steps are retried inside ``jax.lax.while_loop`` so the step stays
JIT-compatible.

Tableau:

- Nodes (c): [0, 1/5, 3/10, 4/5, 8/9, 1, 1]
- 5th-order weights: [35/384, 0, 500/1113, 125/192, -2187/6784, 11/84, 0]
- 4th-order weights: [5179/57600, 0, 7571/16695, 393/640, -92097/339200,
  187/2100, 1/40]
"""

from __future__ import annotations

from collections.abc import Callable

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.config import get_dtype
from astrostm.integrators._adaptive import compute_error_norm, compute_next_step_size
from astrostm.integrators._types import AdaptiveConfig, StepResult

_C = (0.0, 1.0 / 5.0, 3.0 / 10.0, 4.0 / 5.0, 8.0 / 9.0, 1.0, 1.0)

_A = (
    (),
    (1.0 / 5.0,),
    (3.0 / 40.0, 9.0 / 40.0),
    (44.0 / 45.0, -56.0 / 15.0, 32.0 / 9.0),
    (19372.0 / 6561.0, -25360.0 / 2187.0, 64448.0 / 6561.0, -212.0 / 729.0),
    (9017.0 / 3168.0, -355.0 / 33.0, 46732.0 / 5247.0, 49.0 / 176.0, -5103.0 / 18656.0),
    (35.0 / 384.0, 0.0, 500.0 / 1113.0, 125.0 / 192.0, -2187.0 / 6784.0, 11.0 / 84.0),
)

_B_HIGH = _A[6] + (0.0,)

_B_LOW = (
    5179.0 / 57600.0,
    0.0,
    7571.0 / 16695.0,
    393.0 / 640.0,
    -92097.0 / 339200.0,
    187.0 / 2100.0,
    1.0 / 40.0,
)

# Order of the embedded error estimator
_ERROR_ORDER = 4.0


def _combine(weights, ks):
    """Weighted sum of stage derivatives, skipping zero weights."""
    total = None
    for w, k in zip(weights, ks):
        if w == 0.0:
            continue
        total = w * k if total is None else total + w * k
    return total


def dp54_step(
    dynamics: Callable[[ArrayLike, ArrayLike], Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
    config: AdaptiveConfig | None = None,
) -> StepResult:
    """Advance *state* by up to *dt* with error control.

    The step is retried with a smaller size while the normalized error
    exceeds 1.0, up to ``config.max_step_attempts`` times.

    Args:
        dynamics: Right-hand side ``f(t, x) -> dx/dt``.
        t: Current time [s].
        state: Current state vector.
        dt: Requested step [s].  Negative for backward propagation.
        config: Step-size control settings.  Defaults to
            :class:`AdaptiveConfig`.

    Returns:
        StepResult: State at ``t + dt_used`` with the accepted error and the
        suggested next step.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.integrators import dp54_step
        def harmonic(t, x):
            return jnp.array([x[1], -x[0]])
        result = dp54_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.1)
        ```
    """
    if config is None:
        config = AdaptiveConfig()

    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    state = jnp.asarray(state, dtype=dtype)
    dt = jnp.asarray(dt, dtype=dtype)

    def _next_h(error, h):
        return compute_next_step_size(
            error, h, _ERROR_ORDER, config.safety_factor,
            config.min_scale_factor, config.max_scale_factor,
            config.min_step, config.max_step,
        )

    def _attempt_step(h):
        ks = [dynamics(t, state)]
        for stage in range(1, 7):
            x_stage = state + h * _combine(_A[stage], ks)
            ks.append(dynamics(t + _C[stage] * h, x_stage))

        state_high = state + h * _combine(_B_HIGH, ks)
        state_low = state + h * _combine(_B_LOW, ks)

        error = compute_error_norm(
            state_high - state_low, state_high, state,
            config.abs_tol, config.rel_tol, config.error_dims,
        )
        return state_high, error

    # Carry: (h, h_used, attempts, accepted, state_out, error_out).
    # h_used is the step that produced state_out; h is the next trial size.
    def cond_fn(carry):
        _h, _h_used, attempts, accepted, _state_out, _error_out = carry
        return (~accepted) & (attempts < config.max_step_attempts)

    def body_fn(carry):
        h, _h_used, attempts, _accepted, _state_out, _error_out = carry
        state_new, error = _attempt_step(h)

        step_accepted = (error <= 1.0) | (jnp.abs(h) <= config.min_step)
        h_next = jnp.where(step_accepted, h, _next_h(error, h))

        return (h_next, h, attempts + 1, step_accepted, state_new, error)

    init_carry = (
        dt,
        dt,
        jnp.asarray(0, dtype=jnp.int32),
        jnp.asarray(False),
        state,
        jnp.asarray(jnp.inf, dtype=dtype),
    )

    _h, h_used, _attempts, _accepted, state_out, error_out = jax.lax.while_loop(
        cond_fn, body_fn, init_carry
    )

    return StepResult(
        state=state_out,
        dt_used=h_used,
        error_estimate=error_out,
        dt_next=_next_h(error_out, h_used),
    )
