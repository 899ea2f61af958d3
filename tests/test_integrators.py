"""Tests for the astrostm.integrators module.

Tests cover:
- Exactness and convergence on problems with known solutions
- Backward integration
- Adaptive step control, including error_dims on augmented states
- Two-body orbit energy conservation
- JIT compatibility
"""

import jax
import jax.numpy as jnp
import pytest

from astrostm.agents import CARTESIAN_AGENTS
from astrostm.constants import GM_EARTH, R_EARTH
from astrostm.dynamics import StmDynamics, augment_state
from astrostm.force_models import GravityJ2, Kinematics
from astrostm.integrators import AdaptiveConfig, StepResult, dp54_step, rk4_step
from astrostm.integrators._adaptive import compute_error_norm, compute_next_step_size


# ──────────────────────────────────────────────
# Helper dynamics functions
# ──────────────────────────────────────────────

def _exponential_decay(t, x):
    """dx/dt = -x. Solution: x(t) = x0 * exp(-t)."""
    return -x


def _harmonic_oscillator(t, x):
    """State [q, dq/dt] with q'' = -q. Solution: [cos(t), -sin(t)]."""
    return jnp.array([x[1], -x[0]])


def _cubic_dynamics(t, x):
    """dx/dt = 3t^2. Solution: x(t) = x0 + t^3."""
    return 3.0 * t**2 * jnp.ones_like(x)


def _point_mass(t, state):
    r = state[:3]
    v = state[3:]
    a = -GM_EARTH * r / jnp.linalg.norm(r) ** 3
    return jnp.concatenate([v, a])


def _circular_orbit_state(sma):
    v_circ = jnp.sqrt(GM_EARTH / sma)
    return jnp.array([sma, 0.0, 0.0, 0.0, v_circ, 0.0])


def _energy(state):
    r = jnp.linalg.norm(state[:3])
    v = jnp.linalg.norm(state[3:6])
    return 0.5 * v**2 - GM_EARTH / r


# ──────────────────────────────────────────────
# Types
# ──────────────────────────────────────────────


class TestTypes:
    def test_adaptive_defaults(self):
        cfg = AdaptiveConfig()
        assert cfg.abs_tol == 1e-6
        assert cfg.rel_tol == 1e-3
        assert cfg.max_step_attempts == 10
        assert cfg.error_dims is None

    def test_step_result_fields(self):
        assert StepResult._fields == ("state", "dt_used", "error_estimate", "dt_next")


# ──────────────────────────────────────────────
# RK4
# ──────────────────────────────────────────────


class TestRK4:
    def test_cubic_exact(self):
        """RK4 integrates polynomials of degree <= 3 in t exactly."""
        result = rk4_step(_cubic_dynamics, 0.0, jnp.array([1.0]), 2.0)
        assert float(result.state[0]) == pytest.approx(9.0, abs=1e-12)

    def test_result_metadata(self):
        result = rk4_step(_exponential_decay, 0.0, jnp.array([1.0]), 0.1)
        assert float(result.dt_used) == pytest.approx(0.1)
        assert float(result.dt_next) == pytest.approx(0.1)
        assert float(result.error_estimate) == 0.0

    def test_exponential_decay(self):
        x = jnp.array([1.0])
        t = 0.0
        for _ in range(10):
            x = rk4_step(_exponential_decay, t, x, 0.1).state
            t += 0.1
        assert float(x[0]) == pytest.approx(float(jnp.exp(-1.0)), rel=1e-6)

    def test_backward_recovers_start(self):
        x0 = jnp.array([1.0, 0.0])
        fwd = rk4_step(_harmonic_oscillator, 0.0, x0, 0.01).state
        back = rk4_step(_harmonic_oscillator, 0.01, fwd, -0.01).state
        assert jnp.allclose(back, x0, atol=1e-10)

    def test_two_body_energy(self):
        x = _circular_orbit_state(R_EARTH + 500e3)
        e0 = _energy(x)
        for i in range(20):
            x = rk4_step(_point_mass, i * 10.0, x, 10.0).state
        assert abs(float((_energy(x) - e0) / e0)) < 1e-9

    def test_jit_compatible(self):
        x0 = jnp.array([1.0, 0.0])
        eager = rk4_step(_harmonic_oscillator, 0.0, x0, 0.1).state
        jitted = jax.jit(lambda t, x, h: rk4_step(_harmonic_oscillator, t, x, h))(0.0, x0, 0.1)
        assert jnp.allclose(eager, jitted.state, atol=1e-14)


# ──────────────────────────────────────────────
# DP54
# ──────────────────────────────────────────────


class TestDP54:
    def test_harmonic_accuracy(self):
        result = dp54_step(
            _harmonic_oscillator, 0.0, jnp.array([1.0, 0.0]), 0.1,
            AdaptiveConfig(abs_tol=1e-10, rel_tol=1e-10),
        )
        h = float(result.dt_used)
        assert jnp.allclose(result.state, jnp.array([jnp.cos(h), -jnp.sin(h)]), atol=1e-9)

    def test_rejects_oversized_step(self):
        """A step far beyond tolerance is shortened."""
        cfg = AdaptiveConfig(abs_tol=1e-12, rel_tol=1e-12, max_step=1e3)
        result = dp54_step(_harmonic_oscillator, 0.0, jnp.array([1.0, 0.0]), 5.0, cfg)
        assert 0.0 < float(result.dt_used) < 5.0

    def test_grows_easy_step(self):
        result = dp54_step(_exponential_decay, 0.0, jnp.array([1.0]), 1e-3)
        assert float(result.dt_next) > 1e-3

    def test_backward_sign(self):
        result = dp54_step(_exponential_decay, 1.0, jnp.array([1.0]), -0.1)
        assert float(result.dt_used) < 0.0
        assert float(result.dt_next) < 0.0
        assert float(result.state[0]) > 1.0

    def test_two_body_energy(self):
        x = _circular_orbit_state(R_EARTH + 500e3)
        e0 = _energy(x)
        cfg = AdaptiveConfig(abs_tol=1e-6, rel_tol=1e-12)
        result = dp54_step(_point_mass, 0.0, x, 60.0, cfg)
        assert abs(float((_energy(result.state) - e0) / e0)) < 1e-10

    def test_error_dims_limits_control(self):
        """Only the leading components drive acceptance when error_dims is set."""
        dyn = StmDynamics([Kinematics(), GravityJ2.earth()], CARTESIAN_AGENTS)
        z = augment_state(_circular_orbit_state(R_EARTH + 500e3), 6)
        strict_stm = AdaptiveConfig(abs_tol=1e-14, rel_tol=1e-14, max_step=600.0)
        trajectory_only = strict_stm._replace(error_dims=6, abs_tol=1.0, rel_tol=1e-6)
        a = dp54_step(dyn, 0.0, z, 60.0, trajectory_only)
        assert float(a.error_estimate) <= 1.0
        assert float(a.dt_used) == pytest.approx(60.0)
        b = dp54_step(dyn, 0.0, z, 60.0, strict_stm)
        assert float(b.dt_used) < 60.0


class TestAdaptiveHelpers:
    def test_error_norm_dims(self):
        err = jnp.array([1e-9, 1.0])
        state = jnp.array([1.0, 1.0])
        assert float(compute_error_norm(err, state, state, 1e-6, 0.0)) > 1.0
        assert float(compute_error_norm(err, state, state, 1e-6, 0.0, error_dims=1)) < 1.0

    def test_next_step_clamped(self):
        h = compute_next_step_size(1e-20, 10.0, 4.0, 0.9, 0.2, 10.0, 1e-12, 50.0)
        assert float(h) == pytest.approx(50.0)
        h = compute_next_step_size(1e20, -10.0, 4.0, 0.9, 0.2, 10.0, 1e-12, 50.0)
        assert float(h) == pytest.approx(-2.0)
