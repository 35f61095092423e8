"""
Per-entity locks.

Different actors and spells can be processed on different threads, but
writes to one actor's progression fields or one spell's cached fields
must not interleave. The registry hands out one re-entrant lock per
entity id and drops it again once no ``hold`` is using it.

Usage:
    locks = EntityLockRegistry()
    with locks.hold(caster.actor_id, target.actor_id, spell.spell_id):
        ...
"""

from contextlib import ExitStack, contextmanager
from threading import Lock, RLock
from typing import Iterator


class EntityLockRegistry:
    """Lazily created RLock per entity id."""

    def __init__(self):
        self._locks: dict[str, RLock] = {}
        self._users: dict[str, int] = {}
        self._guard = Lock()

    def _get_or_create(self, entity_id: str) -> RLock:
        lock = self._locks.get(entity_id)
        if lock is None:
            lock = RLock()
            self._locks[entity_id] = lock
        return lock

    def lock_for(self, entity_id: str) -> RLock:
        """The current lock for an entity; it is dropped after the next idle ``hold``."""
        with self._guard:
            return self._get_or_create(entity_id)

    @contextmanager
    def hold(self, *entity_ids: str) -> Iterator[None]:
        """
        Hold the locks of several entities at once.

        Locks are taken in sorted id order so two callers holding
        overlapping sets cannot deadlock. A lock is discarded when its
        last holder leaves.
        """
        ids = sorted(set(entity_ids))
        with self._guard:
            locks = [self._get_or_create(entity_id) for entity_id in ids]
            for entity_id in ids:
                self._users[entity_id] = self._users.get(entity_id, 0) + 1

        try:
            with ExitStack() as stack:
                for lock in locks:
                    stack.enter_context(lock)
                yield
        finally:
            with self._guard:
                for entity_id in ids:
                    remaining = self._users[entity_id] - 1
                    if remaining:
                        self._users[entity_id] = remaining
                    else:
                        del self._users[entity_id]
                        self._locks.pop(entity_id, None)

    def __len__(self) -> int:
        return len(self._locks)
