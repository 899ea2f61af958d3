"""ODE right-hand side for jointly propagating a trajectory and its STM.

:class:`StmDynamics` is the function an integrator evaluates at every
stage.  It sums the accelerations and partials of all registered force
contributors, assembles the Jacobian ``A``, and returns the derivative of
the augmented state ``[r, v, stm...]``:

.. math::

    \\dot r = v, \\qquad \\dot v = \\sum_k a_k(r), \\qquad
    \\dot\\Phi = A \\Phi, \\quad A = \\sum_k A_k(r)

Contributors add their share into accumulators, so new effects are
registered by adding them to the collection, without changes here.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.agents import validate_agents
from astrostm.config import get_debug, get_dtype
from astrostm.dynamics.observers import LoggingObserver, MatrixObserver
from astrostm.dynamics.stm import extract_stm, flatten_matrix, unflatten_matrix
from astrostm.force_models import ForceContributor

logger = logging.getLogger(__name__)


class StmDynamics:
    """Augmented-state dynamics built from a set of force contributors.

    The instance keeps a reference to *contributors*, not a copy; the
    caller owns the collection and keeps it unchanged for the duration of
    a propagation.  Evaluation performs no dimension checks: *state* must
    have length ``6 + N*N`` with ``N = len(active_agents)``.

    Args:
        contributors: Force contributors whose effects are summed.
        active_agents: Ordered, unique agent identifiers defining ``N`` and
            the row/column order of ``A`` and the STM.  May be empty.
            With ``N = 0`` only the trajectory is propagated.
        observer: Optional :class:`~astrostm.dynamics.observers.MatrixObserver`
            receiving ``(t, A, STM, dSTM)`` after each evaluation.
        debug: Install a :class:`~astrostm.dynamics.observers.LoggingObserver`
            when no *observer* is given.  Defaults to
            :func:`astrostm.config.get_debug`.

    Raises:
        ValueError: If *active_agents* has duplicates or non-string entries.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.agents import CARTESIAN_AGENTS
        from astrostm.dynamics import StmDynamics, augment_state
        from astrostm.force_models import GravityJ2, Kinematics
        dynamics = StmDynamics([Kinematics(), GravityJ2.earth()], CARTESIAN_AGENTS)
        z0 = augment_state(jnp.array([6878e3, 0.0, 0.0, 0.0, 7612.0, 0.0]), 6)
        dz = dynamics(0.0, z0)
        ```
    """

    def __init__(
        self,
        contributors: Sequence[ForceContributor],
        active_agents: Sequence[str],
        observer: MatrixObserver | None = None,
        debug: bool | None = None,
    ):
        self._contributors = contributors
        self._agents = validate_agents(active_agents)

        if debug is None:
            debug = get_debug()
        if observer is None and debug:
            observer = LoggingObserver()
        self._observer = observer

        logger.debug(
            "STM dynamics with %d contributor(s) over agents %s",
            len(contributors),
            list(self._agents),
        )

    @property
    def contributors(self) -> Sequence[ForceContributor]:
        """The registered force contributors."""
        return self._contributors

    @property
    def active_agents(self) -> tuple[str, ...]:
        """Ordered active agents."""
        return self._agents

    @property
    def n_agents(self) -> int:
        """Number of active agents ``N``."""
        return len(self._agents)

    @property
    def observer(self) -> MatrixObserver | None:
        """Installed matrix observer, if any."""
        return self._observer

    def acceleration(self, state: ArrayLike) -> Array:
        """Total acceleration of all contributors at *state*, shape ``(3,)``."""
        accel = jnp.zeros(3, dtype=get_dtype())
        for contributor in self._contributors:
            accel = contributor.add_acceleration(accel, state)
        return accel

    def partials(self, state: ArrayLike) -> Array:
        """Summed partials of all contributors, flat shape ``(N*N,)``."""
        n = self.n_agents
        buffer = jnp.zeros(n * n, dtype=get_dtype())
        for contributor in self._contributors:
            buffer = contributor.add_partials(buffer, state, self._agents)
        return buffer

    def jacobian(self, state: ArrayLike) -> Array:
        """Jacobian ``A`` with ``A[i, j]`` the partial of agent i wrt agent j."""
        return unflatten_matrix(self.partials(state), self.n_agents)

    def __call__(self, t: ArrayLike, state: ArrayLike) -> Array:
        """Derivative of the augmented state.

        Args:
            t: Evaluation time [s].  Only forwarded to the observer.
            state: Augmented state ``[r, v, stm...]`` of length ``6 + N*N``.

        Returns:
            jax.Array: ``[v, a, (A @ STM).flatten()]``, same length as
            *state*.
        """
        dtype = get_dtype()
        x = jnp.asarray(state, dtype=dtype)

        accel = self.acceleration(x)
        a_matrix = self.jacobian(x)
        stm = extract_stm(x, self.n_agents)
        dstm = a_matrix @ stm

        if self._observer is not None:
            jax.debug.callback(
                self._observer, jnp.asarray(t, dtype=dtype), a_matrix, stm, dstm
            )

        return jnp.concatenate([x[3:6], accel, flatten_matrix(dstm)])
