"""Cartesian kinematic partials.

The rate of each position component is the matching velocity component,
so ``d(X)/d(dX) = d(Y)/d(dY) = d(Z)/d(dZ) = 1``.  No force model carries
these entries.  Registering :class:`Kinematics` next to the gravity
contributors completes the upper-right identity block of the 6x6
Cartesian Jacobian.
"""

from __future__ import annotations

from collections.abc import Sequence

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.agents import POSITION_AGENTS, VELOCITY_AGENTS, agent_index
from astrostm.config import get_dtype
from astrostm.force_models._partials import empty_table, select_partials, table_lookup

_ROWS = jnp.asarray([agent_index(a) for a in POSITION_AGENTS])[:, None]
_COLS = jnp.asarray([agent_index(a) for a in VELOCITY_AGENTS])[None, :]


class Kinematics:
    """Position-rate partials with respect to velocity.

    Contributes no acceleration.  Its partials are independent of the
    state; the cache is still refreshed on every :meth:`add_partials` call
    so it behaves like any other contributor.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.agents import CARTESIAN_AGENTS
        from astrostm.force_models import Kinematics
        kin = Kinematics()
        P = kin.add_partials(jnp.zeros(36), jnp.zeros(42), CARTESIAN_AGENTS)
        ```
    """

    name = "kinematics"

    def __init__(self):
        self._partials = empty_table()

    def __repr__(self) -> str:
        return "Kinematics()"

    def add_acceleration(self, accumulator: ArrayLike, state: ArrayLike) -> Array:
        """Return *accumulator* unchanged."""
        return jnp.asarray(accumulator, dtype=get_dtype())

    def evaluate_partials(self, state: ArrayLike) -> Array:
        """Refresh the cache and return ``d(r)/d(v)``, the 3x3 identity."""
        eye = jnp.eye(3, dtype=get_dtype())
        self._partials = empty_table().at[_ROWS, _COLS].set(eye)
        return eye

    def add_partials(
        self,
        accumulator: ArrayLike,
        state: ArrayLike,
        active_agents: Sequence[str],
    ) -> Array:
        """Return *accumulator* plus the kinematic partials for *active_agents*."""
        self.evaluate_partials(state)
        acc = jnp.asarray(accumulator, dtype=get_dtype())
        return acc + select_partials(self._partials, active_agents)

    def get_agent_partial(self, top: str, bottom: str) -> Array:
        """Cached partial of *top* with respect to *bottom* (0.0 if unmodelled)."""
        return table_lookup(self._partials, top, bottom)
