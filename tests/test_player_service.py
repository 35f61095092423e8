"""
Tests for PlayerService.
"""

import pytest

from runecraft.data_models import Player, RuneCode
from runecraft.errors import UnknownRuneError
from runecraft.progression.player_service import PlayerService


class TestCreate:
    """New players."""

    def test_defaults(self):
        """Full hp and mana, no modifiers, no familiarity."""
        player = PlayerService().create("p1", "Wren")
        assert (player.hp, player.max_hp, player.mana, player.max_mana) == (100.0, 100.0, 100.0, 100.0)
        assert player.cost_efficiency == 0.0
        assert player.control_bonus == 0.0
        assert player.affinity == {}
        assert player.element_xp == {}

    def test_initial_affinity(self):
        """Starting familiarity keys are parsed into runes."""
        player = PlayerService().create("p1", "Wren", {"f": 0.2, RuneCode.A: 0.4})
        assert player.affinity == {RuneCode.F: 0.2, RuneCode.A: 0.4}

    def test_initial_affinity_unknown_rune(self):
        """Affinity keys must be runes."""
        with pytest.raises(UnknownRuneError):
            PlayerService().create("p1", "Wren", {"fire": 0.2})


class TestValidate:
    """Player record checks."""

    def test_valid(self):
        """A freshly created player is valid."""
        service = PlayerService()
        assert service.validate(service.create("p1", "Wren", {"F": 1.0})) == []

    def test_missing_id_and_name(self):
        """Blank id and name are both reported."""
        player = Player(actor_id="  ", name="")
        assert PlayerService().validate(player) == [
            "Player ID is required.",
            "Player name is required.",
        ]

    def test_affinity_range(self):
        """Familiarity must stay in [0, 1]."""
        player = Player(actor_id="p", name="P", affinity={RuneCode.F: 1.5, RuneCode.A: -0.1})
        assert PlayerService().validate(player) == [
            "Affinity F must be in [0,1].",
            "Affinity A must be in [0,1].",
        ]

    @pytest.mark.parametrize("value", ["0.5", None, float("nan"), True])
    def test_affinity_must_be_number(self, value):
        """Non-numeric familiarity is reported."""
        player = Player(actor_id="p", name="P", affinity={RuneCode.F: value})
        assert PlayerService().validate(player) == ["Affinity F must be a number."]
