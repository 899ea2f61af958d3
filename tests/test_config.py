"""Tests for astrostm.config dtype and debug settings."""

import jax.numpy as jnp
import pytest

from astrostm.config import get_debug, get_dtype, set_debug, set_dtype
from astrostm.dynamics import LoggingObserver, StmDynamics
from astrostm.force_models import GravityJ2


class TestDtype:
    def test_float64_active(self):
        """The conftest fixture selects float64."""
        assert get_dtype() == jnp.float64

    def test_set_float32(self):
        set_dtype(jnp.float32)
        assert get_dtype() == jnp.float32

    def test_invalid_dtype_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype(jnp.int32)

    def test_outputs_follow_dtype(self):
        """Force model outputs use the configured dtype."""
        set_dtype(jnp.float32)
        earth = GravityJ2.earth()
        a = earth.add_acceleration(jnp.zeros(3), jnp.array([7.0e6, 0.0, 0.0]))
        assert a.dtype == jnp.float32


class TestDebug:
    def test_default_off(self):
        assert get_debug() is False

    def test_toggle(self):
        set_debug(True)
        assert get_debug() is True
        set_debug(False)
        assert get_debug() is False

    def test_debug_installs_logging_observer(self):
        set_debug(True)
        dynamics = StmDynamics([GravityJ2.earth()], ["X"])
        assert isinstance(dynamics.observer, LoggingObserver)

    def test_no_observer_without_debug(self):
        dynamics = StmDynamics([GravityJ2.earth()], ["X"])
        assert dynamics.observer is None

    def test_explicit_flag_overrides_module_setting(self):
        set_debug(True)
        dynamics = StmDynamics([GravityJ2.earth()], ["X"], debug=False)
        assert dynamics.observer is None
