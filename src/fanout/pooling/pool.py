# src/fanout/pooling/pool.py
"""Fixed-capacity pool of reusable transfer handles.

Arena-plus-index model: the pool owns an array of N handles allocated once,
and a free-list stack of indices. A handle is lent out by index and given
back by index; ownership moves, handles are never destroyed individually.

Invariant (maintained by the single control loop that owns the pool):
    size() + active_count == capacity
"""

from __future__ import annotations

from fanout.contracts.errors import PoolExhaustedError
from fanout.pooling.handle import TransferHandle


class HandlePool:
    """Pool of N transfer handles with a LIFO free-list.

    Not thread-safe: the pool is owned and mutated by one control loop.

    Usage:
        pool = HandlePool(capacity=10)

        if pool.size() > 0:
            index = pool.acquire()
            handle = pool.handle(index)
            ...
            pool.release(index)
    """

    def __init__(self, capacity: int, *, method: str = "POST") -> None:
        """Allocate all handles up front.

        Args:
            capacity: Number of handles (must be >= 1)
            method: HTTP method assigned to every handle
        """
        if capacity < 1:
            raise ValueError(f"Pool capacity must be >= 1, got {capacity}")
        self._handles = [TransferHandle(i, method=method) for i in range(capacity)]
        # Reversed so that acquire() hands out index 0 first
        self._free: list[int] = list(reversed(range(capacity)))

    @property
    def capacity(self) -> int:
        return len(self._handles)

    @property
    def active_count(self) -> int:
        """Number of handles currently lent out."""
        return len(self._handles) - len(self._free)

    def size(self) -> int:
        """Number of free handles."""
        return len(self._free)

    def free_indices(self) -> frozenset[int]:
        return frozenset(self._free)

    def handle(self, index: int) -> TransferHandle:
        return self._handles[index]

    def acquire(self) -> int:
        """Take one free handle.

        Returns:
            Index of the acquired handle

        Raises:
            PoolExhaustedError: If no handle is free (caller must check size() first)
        """
        if not self._free:
            raise PoolExhaustedError(f"acquire() called on exhausted pool (capacity {self.capacity})")
        return self._free.pop()

    def release(self, index: int) -> None:
        """Give a handle back to the free-list.

        Must only be called once the handle is no longer registered with the
        multiplexer. Releasing the same index twice is a caller bug and is
        not detected.

        Raises:
            IndexError: If index is not a slot of this pool
        """
        if not 0 <= index < len(self._handles):
            raise IndexError(f"Handle index {index} out of range for pool of {len(self._handles)}")
        self._free.append(index)
