"""Force contributors for STM propagation.

Each contributor models one effect and answers two queries against the
current state: its acceleration and its partial derivatives with respect
to the active agents.  Any object implementing :class:`ForceContributor`
can be registered with :class:`~astrostm.dynamics.StmDynamics`.

- **Gravity**: central-body point mass plus J2 oblateness, with exact
  closed-form position partials
- **Kinematics**: the position-wrt-velocity identity partials
"""

from ._types import Axis, ForceContributor
from .gravity import GravityJ2, accel_j2, j2_correction, jacobian_j2
from .kinematics import Kinematics

__all__ = [
    # Interface
    "Axis",
    "ForceContributor",
    # Gravity
    "GravityJ2",
    "accel_j2",
    "j2_correction",
    "jacobian_j2",
    # Kinematics
    "Kinematics",
]
