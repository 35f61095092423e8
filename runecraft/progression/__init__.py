"""Actor progression: elemental affinity, rune familiarity, players and locks."""

from runecraft.progression.affinity import AffinityService, compute_focus, xp_to_affinity
from runecraft.progression.rune_familiarity import RuneFamiliarityService, spell_profile
from runecraft.progression.locks import EntityLockRegistry
from runecraft.progression.player_service import PlayerService

__all__ = [
    "AffinityService",
    "compute_focus",
    "xp_to_affinity",
    "RuneFamiliarityService",
    "spell_profile",
    "EntityLockRegistry",
    "PlayerService",
]
