# tests/unit/pooling/test_pool.py
"""Tests for the fixed-capacity HandlePool."""

import pytest

from fanout.contracts.errors import PoolExhaustedError
from fanout.pooling.pool import HandlePool


class TestHandlePoolCreation:
    def test_all_handles_free_initially(self) -> None:
        pool = HandlePool(4)
        assert pool.capacity == 4
        assert pool.size() == 4
        assert pool.active_count == 0
        assert pool.free_indices() == frozenset({0, 1, 2, 3})

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity: int) -> None:
        with pytest.raises(ValueError, match="capacity"):
            HandlePool(capacity)

    def test_handles_carry_their_index_and_method(self) -> None:
        pool = HandlePool(3, method="GET")
        for i in range(3):
            assert pool.handle(i).index == i
            assert pool.handle(i).method == "GET"


class TestAcquireRelease:
    def test_acquire_hands_out_lowest_index_first(self) -> None:
        pool = HandlePool(3)
        assert [pool.acquire(), pool.acquire(), pool.acquire()] == [0, 1, 2]

    def test_free_list_is_lifo(self) -> None:
        pool = HandlePool(3)
        a = pool.acquire()
        b = pool.acquire()
        pool.release(a)
        pool.release(b)
        assert pool.acquire() == b

    def test_acquire_on_empty_pool_raises(self) -> None:
        pool = HandlePool(1)
        pool.acquire()
        with pytest.raises(PoolExhaustedError):
            pool.acquire()

    def test_counts_stay_consistent(self) -> None:
        pool = HandlePool(5)
        taken = [pool.acquire() for _ in range(3)]
        assert pool.size() + pool.active_count == pool.capacity
        assert pool.free_indices().isdisjoint(taken)

        pool.release(taken[1])
        assert pool.size() == 3
        assert pool.active_count == 2

    def test_handle_identity_is_stable(self) -> None:
        """The same index always yields the same handle object."""
        pool = HandlePool(2)
        index = pool.acquire()
        handle = pool.handle(index)
        pool.release(index)
        assert pool.handle(pool.acquire()) is handle

    def test_release_out_of_range_raises(self) -> None:
        pool = HandlePool(2)
        with pytest.raises(IndexError):
            pool.release(2)
        with pytest.raises(IndexError):
            pool.release(-1)
