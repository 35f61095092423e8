"""Player creation and validation."""

import logging
import math
from typing import Any, Optional

from runecraft.data_models import Player, RuneCode, parse_rune_code


logger = logging.getLogger(__name__)


class PlayerService:
    """Builds fresh players and reports problems with edited ones."""

    def create(
        self,
        player_id: str,
        name: str,
        initial_affinity: Optional[dict[Any, float]] = None,
    ) -> Player:
        """
        Create a player with full hp/mana and no crafting modifiers.

        Args:
            player_id: Unique id
            name: Display name
            initial_affinity: Optional starting rune familiarity, keyed by
                letter or RuneCode

        Raises:
            UnknownRuneError: If an affinity key is not a rune
        """
        affinity: dict[RuneCode, float] = {
            parse_rune_code(k): v for k, v in (initial_affinity or {}).items()
        }
        player = Player(
            actor_id=player_id,
            name=name,
            mana=100.0,
            max_mana=100.0,
            hp=100.0,
            max_hp=100.0,
            affinity=affinity,
            control_bonus=0.0,
            cost_efficiency=0.0,
        )
        logger.debug(f"Created player {player_id} ({name})")
        return player

    def validate(self, player: Player) -> list[str]:
        """
        Check a player record.

        Returns:
            Human-readable problems; empty when the player is valid
        """
        errors: list[str] = []
        if not str(player.actor_id or "").strip():
            errors.append("Player ID is required.")
        if not str(player.name or "").strip():
            errors.append("Player name is required.")

        for rune, value in player.affinity.items():
            label = rune.value if isinstance(rune, RuneCode) else str(rune)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
                errors.append(f"Affinity {label} must be a number.")
                continue
            if value < 0 or value > 1:
                errors.append(f"Affinity {label} must be in [0,1].")
        return errors
