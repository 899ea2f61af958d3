"""Tests for active agent identifiers and validation."""

import pytest

from astrostm.agents import (
    CARTESIAN_AGENTS,
    TABLE_SIZE,
    UNKNOWN_AGENT_INDEX,
    Agent,
    agent_index,
    validate_agents,
)


class TestAgent:
    def test_string_equivalence(self):
        """Agents compare and hash like their identifier strings."""
        assert Agent.dX == "dX"
        assert {Agent.MU: 1.0}["mu"] == 1.0

    def test_cartesian_order(self):
        assert [str(a) for a in CARTESIAN_AGENTS] == ["X", "Y", "Z", "dX", "dY", "dZ"]

    def test_indices_unique(self):
        indices = {agent_index(a) for a in Agent}
        assert len(indices) == len(Agent)
        assert max(indices) < UNKNOWN_AGENT_INDEX

    def test_string_and_member_share_index(self):
        assert agent_index("J2") == agent_index(Agent.J2)

    def test_unknown_maps_to_zero_row(self):
        assert agent_index("drag_coefficient") == UNKNOWN_AGENT_INDEX
        assert TABLE_SIZE == UNKNOWN_AGENT_INDEX + 1


class TestValidateAgents:
    def test_returns_tuple_in_order(self):
        agents = validate_agents(["dX", "X", "mu"])
        assert agents == ("dX", "X", "mu")
        assert isinstance(agents, tuple)

    def test_known_names_become_members(self):
        agents = validate_agents(["radius", "custom"])
        assert agents[0] is Agent.RADIUS
        assert agents[1] == "custom"

    def test_duplicate_raises(self):
        with pytest.raises(ValueError, match="Duplicate"):
            validate_agents(["X", "Y", "X"])

    def test_member_and_string_duplicate_raises(self):
        with pytest.raises(ValueError, match="Duplicate"):
            validate_agents([Agent.X, "X"])

    def test_empty_allowed(self):
        assert validate_agents([]) == ()

    def test_non_string_raises(self):
        with pytest.raises(ValueError, match="must be strings"):
            validate_agents(["X", 3])
