"""Shared types for force contributors.

- :class:`ForceContributor`: the capability interface every force model
  implements so that :class:`~astrostm.dynamics.StmDynamics` can sum
  accelerations and Jacobian entries without knowing the concrete effect.
- :class:`Axis`: selector for a Cartesian acceleration component.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from jax import Array
from jax.typing import ArrayLike


class Axis(enum.IntEnum):
    """Cartesian component selector; the value is the state index."""

    X = 0
    Y = 1
    Z = 2


@runtime_checkable
class ForceContributor(Protocol):
    """A single physical effect acting on the orbiting agent.

    Both methods take a caller-owned accumulator and return the
    accumulator plus this contributor's share, so that contributions from
    several effects add up instead of replacing one another.

    *state* is the full augmented state ``[r, v, stm...]``; contributors
    only read the leading Cartesian components.
    """

    name: str

    def add_acceleration(self, accumulator: ArrayLike, state: ArrayLike) -> Array:
        """Return *accumulator* plus this effect's acceleration, shape ``(3,)``."""
        ...

    def add_partials(
        self,
        accumulator: ArrayLike,
        state: ArrayLike,
        active_agents: Sequence[str],
    ) -> Array:
        """Return *accumulator* plus this effect's partials, shape ``(N*N,)``.

        Entry ``i * N + j`` is the partial of ``active_agents[i]`` with
        respect to ``active_agents[j]``.
        """
        ...
