import jax.numpy as jnp
import pytest

from astrostm.config import set_debug, set_dtype


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Run every test in float64 with matrix tracing off.

    test_config.py flips both settings; this fixture restores the defaults
    the rest of the suite relies on.
    """
    set_dtype(jnp.float64)
    set_debug(False)
