"""Dense partial-derivative tables with a zero default.

Contributors store their evaluated partials in a square table indexed by
:func:`~astrostm.agents.agent_index`.  The last row and column belong to
unknown identifiers and are never written, so any pair a contributor does
not model reads as exactly zero.
"""

from __future__ import annotations

from collections.abc import Sequence

import jax.numpy as jnp
from jax import Array

from astrostm.agents import TABLE_SIZE, agent_index
from astrostm.config import get_dtype


def empty_table() -> Array:
    """Return an all-zero ``(TABLE_SIZE, TABLE_SIZE)`` partial table."""
    return jnp.zeros((TABLE_SIZE, TABLE_SIZE), dtype=get_dtype())


def table_lookup(table: Array, top: str, bottom: str) -> Array:
    """Partial of *top* with respect to *bottom* read from *table*."""
    return table[agent_index(top), agent_index(bottom)]


def select_partials(table: Array, active_agents: Sequence[str]) -> Array:
    """Gather the active-agent block of *table* as a flat row-major buffer.

    Args:
        table: Dense partial table.
        active_agents: Ordered agent identifiers, length ``N``.

    Returns:
        jax.Array: Shape ``(N*N,)`` with entry ``i * N + j`` equal to the
        partial of ``active_agents[i]`` with respect to ``active_agents[j]``.
    """
    idx = jnp.asarray([agent_index(name) for name in active_agents], dtype=jnp.int32)
    return table[idx[:, None], idx[None, :]].reshape(-1)
