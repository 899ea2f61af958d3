"""Active agent identifiers.

An *active agent* is a scalar filter parameter whose sensitivity is carried
by the state transition matrix: a Cartesian state component or a physical
constant of a force model.  The ordered list of active agents fixes the
size ``N`` of the STM and the row/column meaning of the Jacobian ``A``:
row ``i`` holds the partials of agent ``i`` with respect to every agent
``j``.

:class:`Agent` enumerates the identifiers known to the bundled force
models.  It is a :class:`~enum.StrEnum`, so plain strings such as ``"dX"``
and the enum members are interchangeable as lookup keys.  Identifiers
outside the enumeration are legal; the bundled contributors treat them as
parameters they do not affect.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable


class Agent(enum.StrEnum):
    """Enumerated filter parameters.

    ``X``, ``Y``, ``Z`` are position components and ``dX``, ``dY``, ``dZ``
    velocity components.  Partials keyed ``(dX, X)`` therefore read as
    "rate of dX (the X acceleration) with respect to X".
    """

    X = "X"
    Y = "Y"
    Z = "Z"
    dX = "dX"
    dY = "dY"
    dZ = "dZ"
    RADIUS = "radius"
    MU = "mu"
    J2 = "J2"


POSITION_AGENTS = (Agent.X, Agent.Y, Agent.Z)
VELOCITY_AGENTS = (Agent.dX, Agent.dY, Agent.dZ)
CARTESIAN_AGENTS = POSITION_AGENTS + VELOCITY_AGENTS

_AGENT_INDEX = {agent: i for i, agent in enumerate(Agent)}

# Dense partial tables carry one extra row/column that stays zero; every
# identifier outside the enumeration maps onto it.
UNKNOWN_AGENT_INDEX = len(_AGENT_INDEX)
TABLE_SIZE = UNKNOWN_AGENT_INDEX + 1


def agent_index(name: str) -> int:
    """Row/column of *name* in a dense partial table.

    Args:
        name: Agent identifier, an :class:`Agent` member or plain string.

    Returns:
        int: Index into a ``(TABLE_SIZE, TABLE_SIZE)`` table.  Unknown
        identifiers map to :data:`UNKNOWN_AGENT_INDEX`, whose entries are
        always zero.

    Examples:
        ```python
        from astrostm.agents import agent_index
        agent_index("dX")
        agent_index("drag_coefficient")  # unknown -> zero row
        ```
    """
    return _AGENT_INDEX.get(name, UNKNOWN_AGENT_INDEX)


def validate_agents(agents: Iterable[str]) -> tuple[str, ...]:
    """Check an active-agent list and return it as a tuple.

    Known identifiers are returned as :class:`Agent` members, unknown ones
    unchanged.  An empty list is valid: with ``N = 0`` only the
    trajectory is propagated.

    Args:
        agents: Ordered agent identifiers.

    Returns:
        tuple[str, ...]: The agents in their original order.

    Raises:
        ValueError: If the list contains a non-string entry or repeats an
            identifier.
    """
    result = []
    seen = set()
    for name in agents:
        if not isinstance(name, str):
            raise ValueError(f"Agent identifiers must be strings, got {name!r}")
        if name in seen:
            raise ValueError(f"Duplicate active agent '{name}'")
        seen.add(name)
        result.append(Agent(name) if name in _AGENT_INDEX else name)

    return tuple(result)
