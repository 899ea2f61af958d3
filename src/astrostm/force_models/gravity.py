"""Central-body gravity with the J2 oblateness perturbation.

Provides the two-body acceleration augmented by the dominant zonal
harmonic J2, its exact closed-form Jacobian with respect to position, and
the :class:`GravityJ2` force contributor that feeds both into
:class:`~astrostm.dynamics.StmDynamics`.

All inputs and outputs use SI base units (metres, metres/second squared).

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, 2012, p. 56-68.
    2. B. Tapley, B. Schutz and G. Born, *Statistical Orbit
       Determination*, 2004, p. 166-170.
"""

from __future__ import annotations

from collections.abc import Sequence

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from astrostm.agents import POSITION_AGENTS, VELOCITY_AGENTS, agent_index
from astrostm.config import get_dtype
from astrostm.constants import (
    GM_EARTH,
    GM_MARS,
    GM_MOON,
    J2_EARTH,
    J2_MARS,
    J2_MOON,
    R_EARTH,
    R_MARS,
    R_MOON,
)
from astrostm.force_models._partials import empty_table, select_partials, table_lookup
from astrostm.force_models._types import Axis


# ---------------------------------------------------------------------------
# Acceleration
# ---------------------------------------------------------------------------


def j2_correction(
    r_object: ArrayLike,
    radius: float,
    j2: float,
    axis: Axis,
) -> Array:
    """Per-axis J2 scale factor applied to the two-body acceleration.

    The horizontal axes share one factor and the polar axis has its own:

    .. math::

        f_{x,y} = 1 - \\tfrac{3}{2} J_2 (R/r)^2 (5 (Z/r)^2 - 1)

        f_z = 1 - \\tfrac{3}{2} J_2 (R/r)^2 (5 (Z/r)^2 - 3)

    Args:
        r_object: Position of the object [m].  Shape ``(3,)`` or longer
            (only first 3 elements used).
        radius: Reference radius of the central body [m].
        j2: Un-normalized J2 coefficient [dimensionless].
        axis: Acceleration component selector.

    Returns:
        Scalar correction factor [dimensionless].

    Raises:
        AssertionError: If *axis* is not one of ``Axis.X``, ``Axis.Y``,
            ``Axis.Z``.  This is an internal logic fault, not an input
            error, and is never caught by astrostm.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.constants import J2_EARTH, R_EARTH
        from astrostm.force_models import Axis, j2_correction
        r = jnp.array([R_EARTH + 500e3, 0.0, 0.0])
        f_z = j2_correction(r, R_EARTH, J2_EARTH, Axis.Z)
        ```
    """
    _float = get_dtype()
    r = jnp.asarray(r_object, dtype=_float)[:3]

    dist = jnp.linalg.norm(r)
    r_ratio2 = (radius / dist) ** 2
    z_ratio2 = (r[2] / dist) ** 2

    if axis in (Axis.X, Axis.Y):
        return 1.0 - 1.5 * j2 * r_ratio2 * (5.0 * z_ratio2 - 1.0)
    elif axis == Axis.Z:
        return 1.0 - 1.5 * j2 * r_ratio2 * (5.0 * z_ratio2 - 3.0)
    else:
        raise AssertionError(f"Unrecognized axis selector {axis!r} in J2 correction")


def accel_j2(
    r_object: ArrayLike,
    gm: float,
    radius: float,
    j2: float,
) -> Array:
    """Acceleration due to a central body's point mass and J2 term.

    Each component is the two-body term ``-gm * r_i / |r|^3`` scaled by
    :func:`j2_correction` for that axis.  With ``j2 = 0`` this reduces to
    point-mass gravity and *radius* has no effect.

    Args:
        r_object: Position of the object relative to the body centre [m].
            Shape ``(3,)`` or longer (only first 3 elements used).
        gm: Gravitational parameter of the body [m^3/s^2].
        radius: Reference radius of the body [m].
        j2: Un-normalized J2 coefficient [dimensionless].

    Returns:
        Acceleration vector [m/s^2], shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.constants import GM_EARTH, J2_EARTH, R_EARTH
        from astrostm.force_models import accel_j2
        r = jnp.array([R_EARTH + 500e3, 0.0, 0.0])
        a = accel_j2(r, GM_EARTH, R_EARTH, J2_EARTH)
        ```
    """
    _float = get_dtype()
    r = jnp.asarray(r_object, dtype=_float)[:3]

    dist = jnp.linalg.norm(r)
    factors = jnp.stack([j2_correction(r, radius, j2, axis) for axis in Axis])

    return -gm * r / dist**3 * factors


# ---------------------------------------------------------------------------
# Jacobian
# ---------------------------------------------------------------------------


def jacobian_j2(
    r_object: ArrayLike,
    gm: float,
    radius: float,
    j2: float,
) -> Array:
    """Partial derivatives of :func:`accel_j2` with respect to position.

    Closed-form expressions, with ``Rr2 = (R/r)^2`` and ``Zr2 = (Z/r)^2``::

        da_x/dX = -gm/r^3 (1 - 1.5 J2 Rr2 (5 Zr2 - 1))
                  + 3 gm X^2/r^5 (1 - 2.5 J2 Rr2 (7 Zr2 - 1))
        da_x/dY = 3 gm X Y/r^5 (1 - 2.5 J2 Rr2 (7 Zr2 - 1))
        da_x/dZ = 3 gm X Z/r^5 (1 - 2.5 J2 Rr2 (7 Zr2 - 3))
        da_y/dY = -gm/r^3 (1 - 1.5 J2 Rr2 (5 Zr2 - 1))
                  + 3 gm Y^2/r^5 (1 - 2.5 J2 Rr2 (7 Zr2 - 1))
        da_y/dZ = 3 gm Y Z/r^5 (1 - 2.5 J2 Rr2 (7 Zr2 - 3))
        da_z/dZ = -gm/r^3 (1 - 1.5 J2 Rr2 (5 Zr2 - 3))
                  + 3 gm Z^2/r^5 (1 - 2.5 J2 Rr2 (7 Zr2 - 5))

    The matrix is symmetric; the lower triangle reuses the upper entries.

    Args:
        r_object: Position of the object relative to the body centre [m].
            Shape ``(3,)`` or longer (only first 3 elements used).
        gm: Gravitational parameter of the body [m^3/s^2].
        radius: Reference radius of the body [m].
        j2: Un-normalized J2 coefficient [dimensionless].

    Returns:
        Jacobian [1/s^2], shape ``(3, 3)``.  Row *i* is the acceleration
        component, column *j* the position component.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.constants import GM_EARTH, J2_EARTH, R_EARTH
        from astrostm.force_models import jacobian_j2
        r = jnp.array([R_EARTH + 500e3, 0.0, 0.0])
        G = jacobian_j2(r, GM_EARTH, R_EARTH, J2_EARTH)
        ```
    """
    _float = get_dtype()
    r = jnp.asarray(r_object, dtype=_float)[:3]
    x, y, z = r[0], r[1], r[2]

    dist = jnp.linalg.norm(r)
    # Unit-vector components keep every term at gm/r^3 scale; r^5 overflows
    # float32 beyond roughly 5e7 m.
    ux, uy, uz = x / dist, y / dist, z / dist
    gm_r3 = gm / dist**3
    r_ratio2 = (radius / dist) ** 2
    z_ratio2 = uz**2

    # Radial terms
    f_xy = 1.0 - 1.5 * j2 * r_ratio2 * (5.0 * z_ratio2 - 1.0)
    f_z = 1.0 - 1.5 * j2 * r_ratio2 * (5.0 * z_ratio2 - 3.0)

    # Second-derivative terms
    g_1 = 1.0 - 2.5 * j2 * r_ratio2 * (7.0 * z_ratio2 - 1.0)
    g_3 = 1.0 - 2.5 * j2 * r_ratio2 * (7.0 * z_ratio2 - 3.0)
    g_5 = 1.0 - 2.5 * j2 * r_ratio2 * (7.0 * z_ratio2 - 5.0)

    dxdx = gm_r3 * (-f_xy + 3.0 * ux**2 * g_1)
    dxdy = gm_r3 * 3.0 * ux * uy * g_1
    dxdz = gm_r3 * 3.0 * ux * uz * g_3
    dydy = gm_r3 * (-f_xy + 3.0 * uy**2 * g_1)
    dydz = gm_r3 * 3.0 * uy * uz * g_3
    dzdz = gm_r3 * (-f_z + 3.0 * uz**2 * g_5)

    return jnp.stack(
        [
            jnp.stack([dxdx, dxdy, dxdz]),
            jnp.stack([dxdy, dydy, dydz]),
            jnp.stack([dxdz, dydz, dzdz]),
        ]
    )


# ---------------------------------------------------------------------------
# Force contributor
# ---------------------------------------------------------------------------

# Cache layout: velocity-rate rows (dX, dY, dZ) against position columns.
_ROWS = jnp.asarray([agent_index(a) for a in VELOCITY_AGENTS])[:, None]
_COLS = jnp.asarray([agent_index(a) for a in POSITION_AGENTS])[None, :]


class GravityJ2:
    """Point-mass plus J2 gravity of a single central body.

    Physical parameters are fixed at construction.  Each call to
    :meth:`evaluate_partials` (and therefore :meth:`add_partials`)
    overwrites the instance's partial cache with values for the state it
    was given; :meth:`get_agent_partial` reads whatever the most recent
    call left there.  Evaluate and consume partials for one state before
    supplying the next.

    The cache holds the nine position partials of the acceleration, keyed
    ``("dX", "X")`` through ``("dZ", "Z")``.  Partials with respect to
    velocity, body radius, mu and J2 are not modelled and read as 0.0.

    This is a plain Python class (not a JAX pytree).  Under ``jax.jit`` the
    cache holds traced values, so only read it inside the same trace.

    Args:
        radius: Reference radius [m].  Zero with ``j2 = 0`` models a point mass.
        radius: Reference radius [m].
        mu: Gravitational parameter [m^3/s^2].
        j2: Un-normalized J2 coefficient [dimensionless].

    Raises:
        ValueError: If *radius* is negative or *mu* is not positive.

    Examples:
        ```python
        import jax.numpy as jnp
        from astrostm.force_models import GravityJ2
        earth = GravityJ2.earth()
        x = jnp.array([6878e3, 0.0, 0.0, 0.0, 7612.0, 0.0])
        a = earth.add_acceleration(jnp.zeros(3), x)
        P = earth.add_partials(jnp.zeros(4), x, ["dX", "X"])
        earth.get_agent_partial("dX", "X")
        ```
    """

    def __init__(self, name: str, radius: float, mu: float, j2: float):
        if radius < 0.0:
            raise ValueError(f"radius must be non-negative, got {radius}")
        if mu <= 0.0:
            raise ValueError(f"mu must be positive, got {mu}")
        self._name = name
        self._radius = float(radius)
        self._mu = float(mu)
        self._j2 = float(j2)
        self._partials = empty_table()

    @property
    def name(self) -> str:
        """Body name."""
        return self._name

    @property
    def radius(self) -> float:
        """Reference radius [m]."""
        return self._radius

    @property
    def mu(self) -> float:
        """Gravitational parameter [m^3/s^2]."""
        return self._mu

    @property
    def j2(self) -> float:
        """Un-normalized J2 coefficient."""
        return self._j2

    def __repr__(self) -> str:
        return (
            f"GravityJ2(name={self._name!r}, radius={self._radius}, "
            f"mu={self._mu}, j2={self._j2})"
        )

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    @classmethod
    def earth(cls) -> GravityJ2:
        """Earth with GGM05s radius, GM and J2."""
        return cls("Earth", R_EARTH, GM_EARTH, J2_EARTH)

    @classmethod
    def moon(cls) -> GravityJ2:
        """Moon with LP165P radius and J2."""
        return cls("Moon", R_MOON, GM_MOON, J2_MOON)

    @classmethod
    def mars(cls) -> GravityJ2:
        """Mars with MRO120D radius and J2."""
        return cls("Mars", R_MARS, GM_MARS, J2_MARS)

    # ------------------------------------------------------------------
    # ForceContributor interface
    # ------------------------------------------------------------------

    def add_acceleration(self, accumulator: ArrayLike, state: ArrayLike) -> Array:
        """Return *accumulator* plus this body's acceleration at *state*.

        Args:
            accumulator: Running acceleration sum [m/s^2], shape ``(3,)``.
            state: State vector; only the position (first 3 elements) is
                used.

        Returns:
            jax.Array: Updated acceleration sum, shape ``(3,)``.
        """
        acc = jnp.asarray(accumulator, dtype=get_dtype())
        return acc + accel_j2(state, self._mu, self._radius, self._j2)

    def evaluate_partials(self, state: ArrayLike) -> Array:
        """Recompute the partial cache for *state*.

        Args:
            state: State vector; only the position (first 3 elements) is
                used.

        Returns:
            jax.Array: The acceleration Jacobian with respect to position,
            shape ``(3, 3)``, as stored in the cache.
        """
        jac = jacobian_j2(state, self._mu, self._radius, self._j2)
        self._partials = empty_table().at[_ROWS, _COLS].set(jac)
        return jac

    def add_partials(
        self,
        accumulator: ArrayLike,
        state: ArrayLike,
        active_agents: Sequence[str],
    ) -> Array:
        """Return *accumulator* plus this body's partials for *active_agents*.

        Re-evaluates the cache at *state*, then adds the partial of
        ``active_agents[i]`` with respect to ``active_agents[j]`` into entry
        ``i * N + j``.  Pairs the cache does not hold add 0.0.

        Args:
            accumulator: Running partial sum, shape ``(N*N,)``.
            state: State vector; only the position is used.
            active_agents: Ordered agent identifiers, length ``N``.

        Returns:
            jax.Array: Updated partial sum, shape ``(N*N,)``.
        """
        self.evaluate_partials(state)
        acc = jnp.asarray(accumulator, dtype=get_dtype())
        return acc + select_partials(self._partials, active_agents)

    def get_agent_partial(self, top: str, bottom: str) -> Array:
        """Cached partial of *top* with respect to *bottom*.

        Args:
            top: Agent being differentiated, e.g. ``"dX"``.
            bottom: Agent differentiated against, e.g. ``"X"``.

        Returns:
            jax.Array: Scalar partial from the most recent evaluation,
            exactly 0.0 for pairs this body does not model.
        """
        return table_lookup(self._partials, top, bottom)
