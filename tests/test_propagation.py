"""Tests for the propagation driver.

Tests cover:
- STM against automatic differentiation of the same RK4 flow
- Liouville property (det STM = 1) and forward/backward consistency
- Landing exactly on the end time, adaptive stepping
- Input validation and logging
"""

import logging

import jax
import jax.numpy as jnp
import pytest

from astrostm.agents import CARTESIAN_AGENTS
from astrostm.constants import GM_EARTH, J2_EARTH, R_EARTH
from astrostm.dynamics import StmDynamics, augment_state
from astrostm.force_models import GravityJ2, Kinematics, accel_j2
from astrostm.integrators import AdaptiveConfig, rk4_step
from astrostm.propagation import PropagationResult, propagate_stm


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _initial_state():
    """Inclined, slightly eccentric LEO state."""
    return jnp.array([6.9e6, 0.0, 0.0, 0.0, 5.2e3, 5.4e3])


def _cartesian_dynamics(earth=None):
    earth = GravityJ2.earth() if earth is None else earth
    return StmDynamics([Kinematics(), earth], CARTESIAN_AGENTS)


def _plain_dynamics(t, x):
    return jnp.concatenate([x[3:6], accel_j2(x, GM_EARTH, R_EARTH, J2_EARTH)])


def _rk4_flow(x0, dt, n_steps):
    def body(i, x):
        return rk4_step(_plain_dynamics, i * dt, x, dt).state

    return jax.lax.fori_loop(0, n_steps, body, x0)


# ===========================================================================
# Accuracy
# ===========================================================================


class TestPropagateStm:
    def test_result_type_and_shapes(self):
        result = propagate_stm(_cartesian_dynamics(), 0.0, _initial_state(), 120.0, 60.0)
        assert isinstance(result, PropagationResult)
        assert result.state.shape == (6,)
        assert result.stm.shape == (6, 6)
        assert result.jacobian.shape == (6, 6)
        assert result.times.shape == (3,)
        assert result.states.shape == (3, 42)

    def test_stm_matches_autodiff_of_flow(self):
        """Integrated variational equations equal the Jacobian of the RK4 map."""
        x0 = _initial_state()
        dt, n_steps = 20.0, 30
        result = propagate_stm(_cartesian_dynamics(), 0.0, x0, dt * n_steps, dt)

        phi_ad = jax.jacfwd(lambda x: _rk4_flow(x, dt, n_steps))(x0)
        assert jnp.allclose(result.state, _rk4_flow(x0, dt, n_steps), rtol=1e-12)
        assert jnp.allclose(result.stm, phi_ad, rtol=1e-8, atol=1e-10)

    def test_stm_predicts_perturbed_trajectory(self):
        x0 = _initial_state()
        delta = jnp.array([10.0, -5.0, 3.0, 0.01, 0.02, -0.01])
        dyn = _cartesian_dynamics()
        nominal = propagate_stm(dyn, 0.0, x0, 600.0, 30.0)
        perturbed = propagate_stm(dyn, 0.0, x0 + delta, 600.0, 30.0)
        predicted = nominal.stm @ delta
        actual = perturbed.state - nominal.state
        assert jnp.allclose(predicted, actual, rtol=1e-3, atol=1e-3)

    def test_determinant_is_one(self):
        """trace(A) = 0, so the STM preserves phase-space volume."""
        result = propagate_stm(_cartesian_dynamics(), 0.0, _initial_state(), 1800.0, 30.0)
        assert float(jnp.linalg.det(result.stm)) == pytest.approx(1.0, abs=1e-8)

    def test_backward_inverts_forward(self):
        dyn = _cartesian_dynamics()
        fwd = propagate_stm(dyn, 0.0, _initial_state(), 600.0, 30.0)
        back = propagate_stm(dyn, 600.0, fwd.state, 0.0, 30.0)
        assert float(back.t) == 0.0
        assert jnp.allclose(back.state, _initial_state(), rtol=1e-9, atol=1e-5)
        assert jnp.allclose(back.stm @ fwd.stm, jnp.eye(6), atol=1e-7)

    def test_lands_on_end_time(self):
        result = propagate_stm(_cartesian_dynamics(), 0.0, _initial_state(), 650.0, 60.0)
        assert float(result.t) == 650.0
        assert float(result.times[-1]) == 650.0
        assert float(result.times[-1] - result.times[-2]) == pytest.approx(50.0)

    def test_zero_span(self):
        x0 = _initial_state()
        result = propagate_stm(_cartesian_dynamics(), 10.0, x0, 10.0, 60.0)
        assert jnp.array_equal(result.state, x0)
        assert jnp.array_equal(result.stm, jnp.eye(6))
        assert result.times.shape == (1,)

    def test_continues_from_augmented_state(self):
        """Two legs chain through the augmented state."""
        dyn = _cartesian_dynamics()
        x0 = _initial_state()
        leg1 = propagate_stm(dyn, 0.0, x0, 300.0, 30.0)
        leg2 = propagate_stm(dyn, 300.0, leg1.states[-1], 600.0, 30.0)
        full = propagate_stm(dyn, 0.0, x0, 600.0, 30.0)
        assert jnp.allclose(leg2.state, full.state, rtol=1e-12)
        assert jnp.allclose(leg2.stm, full.stm, rtol=1e-10, atol=1e-12)

    def test_trajectory_only(self):
        """With no active agents the trajectory matches the full run."""
        x0 = _initial_state()
        bare = StmDynamics([Kinematics(), GravityJ2.earth()], [])
        result = propagate_stm(bare, 0.0, x0, 300.0, 30.0)
        full = propagate_stm(_cartesian_dynamics(), 0.0, x0, 300.0, 30.0)
        assert result.stm.shape == (0, 0)
        assert result.states.shape == (11, 6)
        assert jnp.allclose(result.state, full.state, rtol=1e-12)

    def test_dp54_agrees_with_rk4(self):
        dyn = _cartesian_dynamics()
        x0 = _initial_state()
        rk4 = propagate_stm(dyn, 0.0, x0, 900.0, 10.0)
        config = AdaptiveConfig(abs_tol=1e-6, rel_tol=1e-10, max_step=120.0, error_dims=6)
        dp54 = propagate_stm(dyn, 0.0, x0, 900.0, 60.0, method="dp54", config=config)
        assert float(dp54.t) == pytest.approx(900.0)
        assert jnp.allclose(dp54.state[:3], rk4.state[:3], atol=1e-1)
        assert jnp.allclose(dp54.stm, rk4.stm, rtol=1e-4, atol=1e-6)

    def test_caches_hold_final_state(self):
        earth = GravityJ2.earth()
        dyn = _cartesian_dynamics(earth)
        result = propagate_stm(dyn, 0.0, _initial_state(), 120.0, 60.0)
        assert float(earth.get_agent_partial("dX", "X")) == float(result.jacobian[3, 0])
        assert jnp.array_equal(result.jacobian, dyn.jacobian(result.states[-1]))


# ===========================================================================
# Validation & logging
# ===========================================================================


class TestPropagateValidation:
    def test_zero_step(self):
        with pytest.raises(ValueError, match="non-zero"):
            propagate_stm(_cartesian_dynamics(), 0.0, _initial_state(), 60.0, 0.0)

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="method"):
            propagate_stm(_cartesian_dynamics(), 0.0, _initial_state(), 60.0, 10.0, method="euler")

    def test_wrong_state_length(self):
        with pytest.raises(ValueError, match="state must have length"):
            propagate_stm(_cartesian_dynamics(), 0.0, augment_state(_initial_state(), 2), 60.0, 10.0)

    def test_non_square_stm_block(self):
        with pytest.raises(ValueError, match="not an augmented state"):
            propagate_stm(_cartesian_dynamics(), 0.0, jnp.zeros(10), 60.0, 10.0)

    def test_two_dimensional_state(self):
        with pytest.raises(ValueError, match="one-dimensional"):
            propagate_stm(_cartesian_dynamics(), 0.0, jnp.zeros((2, 6)), 60.0, 10.0)

    def test_logs_completion(self, caplog):
        with caplog.at_level(logging.INFO, logger="astrostm.propagation"):
            propagate_stm(_cartesian_dynamics(), 0.0, _initial_state(), 120.0, 60.0)
        assert any("in 2 steps" in r.getMessage() for r in caplog.records)
