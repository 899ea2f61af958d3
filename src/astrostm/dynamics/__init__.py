"""Augmented-state dynamics for joint trajectory and STM propagation.

- :class:`StmDynamics`: integrator right-hand side summing force
  contributors and computing ``dSTM/dt = A @ STM``
- STM layout helpers: flatten/reshape the row-major STM block and build
  augmented states
- Observers: optional sinks for the per-evaluation matrices
"""

from .aggregator import StmDynamics
from .observers import LoggingObserver, MatrixObserver, MatrixSnapshot, RecordingObserver
from .stm import (
    STATE_DIM,
    augment_state,
    augmented_size,
    extract_state,
    extract_stm,
    flatten_matrix,
    infer_n_agents,
    unflatten_matrix,
)

__all__ = [
    # Aggregator
    "StmDynamics",
    # Observers
    "MatrixObserver",
    "MatrixSnapshot",
    "LoggingObserver",
    "RecordingObserver",
    # STM layout
    "STATE_DIM",
    "augmented_size",
    "infer_n_agents",
    "flatten_matrix",
    "unflatten_matrix",
    "augment_state",
    "extract_state",
    "extract_stm",
]
