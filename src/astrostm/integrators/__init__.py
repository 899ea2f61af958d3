"""Numerical integrators for augmented-state propagation.

- :func:`rk4_step` -- classic 4th-order Runge-Kutta (fixed step)
- :func:`dp54_step` -- Dormand-Prince 5(4) (adaptive step)

Both share the interface::

    result = step_fn(dynamics, t, state, dt)

where ``dynamics(t, x) -> dx`` is the ODE right-hand side, typically a
:class:`~astrostm.dynamics.StmDynamics`, and ``result`` is a
:class:`StepResult`.
"""

from astrostm.integrators._types import AdaptiveConfig, StepResult
from astrostm.integrators.dp54 import dp54_step
from astrostm.integrators.rk4 import rk4_step

__all__ = [
    "AdaptiveConfig",
    "StepResult",
    "rk4_step",
    "dp54_step",
]
