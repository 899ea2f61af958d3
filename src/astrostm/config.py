"""Module-wide precision and diagnostics configuration.

Provides ``set_dtype`` / ``get_dtype`` to control the float dtype used by
the force models, the dynamics aggregator and the integrators, and
``set_debug`` / ``get_debug`` to switch on matrix tracing.

The default dtype is ``jnp.float32``.  STM entries routinely span many
orders of magnitude, so orbit determination work should call
``set_dtype(jnp.float64)`` first; doing so enables JAX's 64-bit mode
(``jax_enable_x64``).

Both settings are read when a dynamics function is traced.  Call the
setters **before** any ``jax.jit`` compilation; a compiled function keeps
the values that were active while it was traced.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

_dtype = jnp.float32
_debug = False


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for astrostm.

    If *dtype* is ``jnp.float64``, JAX's 64-bit mode is enabled via
    ``jax.config.update("jax_enable_x64", True)``.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: "
            f"jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64"
        )
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    Returns:
        The active float dtype (default ``jnp.float32``).
    """
    return _dtype


def set_debug(enabled: bool) -> None:
    """Turn matrix tracing on or off for newly built dynamics.

    When enabled, :class:`~astrostm.dynamics.StmDynamics` instances created
    without an explicit observer log ``A``, ``STM`` and ``dSTM`` at every
    evaluation through :class:`~astrostm.dynamics.LoggingObserver`.

    Args:
        enabled: ``True`` to enable tracing.
    """
    global _debug
    _debug = bool(enabled)


def get_debug() -> bool:
    """Return whether matrix tracing is enabled (default ``False``)."""
    return _debug
