"""Result and configuration types shared by the integrators.

Both are :class:`~typing.NamedTuple` instances, so JAX treats them as
pytrees and they pass through ``jax.jit`` and ``jax.lax`` control flow.
"""

from __future__ import annotations

from typing import NamedTuple

from jax import Array


class StepResult(NamedTuple):
    """Outcome of one integrator step.

    Attributes:
        state: State at ``t + dt_used``.
        dt_used: Step actually taken.  Adaptive steps may be shorter than
            requested after rejections.
        error_estimate: Normalized local error; <= 1.0 means the step met
            the tolerance.  Always 0.0 for RK4.
        dt_next: Suggested next step.  Equals ``dt_used`` for RK4.
    """

    state: Array
    dt_used: Array
    error_estimate: Array
    dt_next: Array


class AdaptiveConfig(NamedTuple):
    """Step-size control settings for :func:`~astrostm.integrators.dp54_step`.

    Attributes:
        abs_tol: Absolute error tolerance per component.
        rel_tol: Relative error tolerance per component.
        safety_factor: Multiplier on the predicted step size (< 1.0 is
            conservative).
        min_scale_factor: Smallest allowed ``|dt_next| / |dt_used|``.
        max_scale_factor: Largest allowed ``|dt_next| / |dt_used|``.
        min_step: Smallest step magnitude; a step this small is accepted
            whatever its error.
        max_step: Largest step magnitude.
        max_step_attempts: Rejections allowed before a step is accepted
            regardless of error.
        error_dims: Number of leading state components included in the
            error norm.  ``None`` uses the whole state.  For augmented
            states, ``6`` keeps the STM block from driving the step size.
    """

    abs_tol: float = 1e-6
    rel_tol: float = 1e-3
    safety_factor: float = 0.9
    min_scale_factor: float = 0.2
    max_scale_factor: float = 10.0
    min_step: float = 1e-12
    max_step: float = 900.0
    max_step_attempts: int = 10
    error_dims: int | None = None
