"""
astrostm propagates orbit trajectories together with their state transition matrix in JAX.

Force contributors (central-body gravity with J2, kinematics) supply
accelerations and analytic partials; :class:`StmDynamics` sums them into
the augmented-state derivative ``[v, a, A @ STM]`` consumed by the
integrators.
"""

__version__ = "0.1.0"

from .constants import (
    DEG2RAD,
    RAD2DEG,
    R_EARTH,
    GM_EARTH,
    J2_EARTH,
    R_MOON,
    GM_MOON,
    J2_MOON,
    R_MARS,
    GM_MARS,
    J2_MARS,
)

from .config import set_dtype, get_dtype, set_debug, get_debug

from .agents import Agent, CARTESIAN_AGENTS, validate_agents

from .force_models import (
    Axis,
    ForceContributor,
    GravityJ2,
    Kinematics,
    accel_j2,
    j2_correction,
    jacobian_j2,
)

from .dynamics import (
    StmDynamics,
    LoggingObserver,
    RecordingObserver,
    augment_state,
    extract_state,
    extract_stm,
    flatten_matrix,
    unflatten_matrix,
)

from .integrators import AdaptiveConfig, StepResult, rk4_step, dp54_step

from .propagation import PropagationResult, propagate_stm
