"""Diagnostic sinks for the matrices computed at each evaluation.

:class:`~astrostm.dynamics.StmDynamics` hands ``(t, A, STM, dSTM)`` to an
observer through ``jax.debug.callback`` after computing the derivative.
Observers see host-side numpy arrays and cannot influence the result.
Inside ``jax.jit`` the callback may run asynchronously; call
``jax.effects_barrier()`` before reading what an observer collected.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Protocol

import numpy as np

logger = logging.getLogger(__name__)


class MatrixObserver(Protocol):
    """Callable receiving the matrices of one dynamics evaluation."""

    def __call__(
        self,
        t: np.ndarray,
        a_matrix: np.ndarray,
        stm: np.ndarray,
        dstm: np.ndarray,
    ) -> None: ...


class MatrixSnapshot(NamedTuple):
    """Matrices captured from one evaluation.

    Attributes:
        t: Evaluation time.
        a_matrix: Jacobian ``A``, shape ``(N, N)``.
        stm: STM read from the state, shape ``(N, N)``.
        dstm: ``A @ STM``, shape ``(N, N)``.
    """

    t: float
    a_matrix: np.ndarray
    stm: np.ndarray
    dstm: np.ndarray


def _format_matrix(matrix: np.ndarray) -> str:
    return np.array2string(np.asarray(matrix), precision=6, max_line_width=160)


class LoggingObserver:
    """Write ``A``, ``STM`` and ``dSTM`` to a logger.

    Args:
        log: Logger to write to.  Defaults to this module's logger.
        level: Logging level of the records (default ``DEBUG``).

    Examples:
        ```python
        import logging
        from astrostm.dynamics import LoggingObserver, StmDynamics
        from astrostm.force_models import GravityJ2
        logging.basicConfig(level=logging.DEBUG)
        dynamics = StmDynamics([GravityJ2.earth()], ["X"], observer=LoggingObserver())
        ```
    """

    def __init__(self, log: logging.Logger | None = None, level: int = logging.DEBUG):
        self.log = log if log is not None else logger
        self.level = level

    def __call__(self, t, a_matrix, stm, dstm) -> None:
        if not self.log.isEnabledFor(self.level):
            return
        t = float(t)
        self.log.log(self.level, "A at time %s\n%s", t, _format_matrix(a_matrix))
        self.log.log(self.level, "STM at time %s\n%s", t, _format_matrix(stm))
        self.log.log(
            self.level, "Derivative of STM at time %s\n%s", t, _format_matrix(dstm)
        )


class RecordingObserver:
    """Keep a :class:`MatrixSnapshot` of every evaluation.

    Attributes:
        snapshots: Captured snapshots in call order.
    """

    def __init__(self):
        self.snapshots: list[MatrixSnapshot] = []

    def __call__(self, t, a_matrix, stm, dstm) -> None:
        self.snapshots.append(
            MatrixSnapshot(
                t=float(t),
                a_matrix=np.array(a_matrix),
                stm=np.array(stm),
                dstm=np.array(dstm),
            )
        )

    def clear(self) -> None:
        """Drop all captured snapshots."""
        self.snapshots.clear()
