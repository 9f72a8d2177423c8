"""Pool sizing strategies: how many instances to create or remove."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Strategy(ABC):
    """Decides how a pool grows and shrinks."""

    @abstractmethod
    def count_create_remove(
        self, min_size: int, max_size: int, busy_count: int, free_count: int
    ) -> tuple[int, int]:
        """Return ``(should_create, should_remove)`` for the pool."""

    @abstractmethod
    def can_create(
        self, min_size: int, max_size: int, busy_count: int, free_count: int
    ) -> bool:
        """Return True if a new instance may be created on demand."""


class Greedy(Strategy):
    """Ignores busy instances, never removes, and always allows creation."""

    def count_create_remove(
        self, min_size: int, max_size: int, busy_count: int, free_count: int
    ) -> tuple[int, int]:
        # Keep at least ``min_size`` free instances in the pool.
        should_create = min_size - free_count if min_size > free_count else 0
        return should_create, 0

    def can_create(
        self, min_size: int, max_size: int, busy_count: int, free_count: int
    ) -> bool:
        return True


class MinMax(Strategy):
    """Keeps the total number of instances between a minimum and a maximum."""

    def count_create_remove(
        self, min_size: int, max_size: int, busy_count: int, free_count: int
    ) -> tuple[int, int]:
        # Excess free instances can exist only after a restart with a smaller
        # maximum; only free instances are ever removed.
        if min_size < 0:
            min_size = 0
        if max_size <= 0:
            max_size = 1
        if min_size > max_size:
            min_size = 0

        total = busy_count + free_count
        should_create = 0
        should_remove = 0
        if total > max_size:
            should_remove = min(total - max_size, free_count)
        elif total < min_size:
            should_create = min_size - total
        return should_create, should_remove

    def can_create(
        self, min_size: int, max_size: int, busy_count: int, free_count: int
    ) -> bool:
        return busy_count + free_count < max_size