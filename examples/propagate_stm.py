# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "astrostm"]
#
# [tool.uv.sources]
# astrostm = { path = ".." }
# ///
"""Propagate a circular orbit and its state transition matrix under J2 gravity.

Builds the augmented-state dynamics from the kinematics and J2 gravity
contributors for the selected central body, propagates the trajectory
together with its 6x6 STM, and prints the final state, the STM and the
Jacobian at the final state.

Requires astrostm to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/propagate_stm.py [OPTIONS]

Examples:
    # One hour in LEO with fixed-step RK4
    uv run examples/propagate_stm.py --altitude 500 --duration 3600

    # Adaptive Dormand-Prince around the Moon
    uv run examples/propagate_stm.py --body moon --altitude 100 --method dp54

    # Log A, STM and dSTM at every dynamics evaluation
    uv run examples/propagate_stm.py --duration 120 --dt 60 --debug
"""

import enum
import logging
import math
import time
from typing import Annotated

import jax.numpy as jnp
import numpy as np
import typer

from astrostm import set_debug, set_dtype
from astrostm.agents import CARTESIAN_AGENTS
from astrostm.constants import DEG2RAD
from astrostm.dynamics import StmDynamics
from astrostm.force_models import GravityJ2, Kinematics
from astrostm.propagation import propagate_stm

set_dtype(jnp.float64)  # Must be before any JIT compilation


class Body(enum.StrEnum):
    earth = "earth"
    moon = "moon"
    mars = "mars"


class Method(enum.StrEnum):
    rk4 = "rk4"
    dp54 = "dp54"


_BODIES = {
    Body.earth: GravityJ2.earth,
    Body.moon: GravityJ2.moon,
    Body.mars: GravityJ2.mars,
}


def circular_state(gravity: GravityJ2, altitude_km: float, inclination_deg: float):
    """Cartesian state on a circular orbit starting at the ascending node."""
    a = gravity.radius + altitude_km * 1e3
    v = math.sqrt(gravity.mu / a)
    inc = inclination_deg * DEG2RAD
    return jnp.array([a, 0.0, 0.0, 0.0, v * math.cos(inc), v * math.sin(inc)])


def main(
    body: Annotated[Body, typer.Option(help="Central body")] = Body.earth,
    altitude: Annotated[float, typer.Option(help="Orbit altitude [km]")] = 500.0,
    inclination: Annotated[float, typer.Option(help="Inclination [deg]")] = 51.6,
    duration: Annotated[float, typer.Option(help="Propagation span [s]")] = 3600.0,
    dt: Annotated[float, typer.Option(help="Step size, initial step for dp54 [s]")] = 60.0,
    method: Annotated[Method, typer.Option(help="Integrator")] = Method.rk4,
    debug: Annotated[bool, typer.Option(help="Log matrices at every evaluation")] = False,
):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    set_debug(debug)

    gravity = _BODIES[body]()
    dynamics = StmDynamics([Kinematics(), gravity], CARTESIAN_AGENTS)
    x0 = circular_state(gravity, altitude, inclination)

    typer.echo(f"Body:        {gravity!r}")
    typer.echo(f"Initial:     {np.array2string(np.asarray(x0), precision=3)}")

    start = time.perf_counter()
    result = propagate_stm(dynamics, 0.0, x0, duration, dt, method=str(method))
    elapsed = time.perf_counter() - start

    np.set_printoptions(precision=6, suppress=False, linewidth=120)
    typer.echo(f"Steps:       {len(result.times) - 1} in {elapsed:.2f} s")
    typer.echo(f"Final t:     {float(result.t):.3f} s")
    typer.echo(f"Final state: {np.asarray(result.state)}")
    typer.echo(f"det(STM):    {float(jnp.linalg.det(result.stm)):.12f}")
    typer.echo("STM:")
    typer.echo(str(np.asarray(result.stm)))
    typer.echo("Jacobian at final state:")
    typer.echo(str(np.asarray(result.jacobian)))


if __name__ == "__main__":
    typer.run(main)
