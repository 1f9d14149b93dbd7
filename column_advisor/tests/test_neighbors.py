import numpy as np
import pytest

from column_advisor.errors import DegenerateNeighborError
from column_advisor.search.neighbors import (
    MOVE_BUCKETS,
    draw_move,
    full_reverse,
    insert_after,
    insert_before,
    move_for_seed,
    neighbor,
    range_reverse,
    range_shuffle,
    swap,
)


def test_neighbor_is_distinct_permutation_and_input_untouched() -> None:
    rng = np.random.default_rng(3)
    for n in range(2, 9):
        for _ in range(200):
            order = [int(c) for c in rng.permutation(n)]
            before = list(order)
            out = neighbor(order, rng)
            assert sorted(out) == list(range(n))
            assert out != tuple(order)
            assert order == before


def test_swap_exchanges_exactly_two_positions() -> None:
    order = (4, 2, 0, 3, 1)
    out = swap(order, 1, 3)
    assert out == (4, 3, 0, 2, 1)
    diff = [i for i in range(len(order)) if order[i] != out[i]]
    assert diff == [1, 3]


def test_full_reverse_is_self_inverse() -> None:
    order = (3, 0, 4, 1, 2)
    assert full_reverse(order) == (2, 1, 4, 0, 3)
    assert full_reverse(full_reverse(order)) == order


def test_insert_moves_element_next_to_anchor() -> None:
    order = (0, 1, 2, 3, 4)
    assert insert_before(order, 1, 3) == (0, 3, 1, 2, 4)
    assert insert_after(order, 1, 3) == (0, 1, 3, 2, 4)
    assert insert_before(order, 3, 1) == (0, 2, 1, 3, 4)
    assert insert_after(order, 3, 1) == (0, 2, 3, 1, 4)


def test_range_moves_stay_inside_range() -> None:
    rng = np.random.default_rng(11)
    order = (0, 1, 2, 3, 4, 5)
    assert range_reverse(order, 1, 3) == (0, 3, 2, 1, 4, 5)
    assert range_reverse(order, 2, 1) == order
    for _ in range(50):
        out = range_shuffle(order, 2, 3, rng)
        assert out[:2] == order[:2]
        assert out[5:] == order[5:]
        assert sorted(out[2:5]) == [2, 3, 4]


def test_move_buckets_follow_cumulative_thresholds() -> None:
    assert move_for_seed(0) == "full_shuffle"
    assert move_for_seed(4) == "full_shuffle"
    assert move_for_seed(5) == "range_shuffle"
    assert move_for_seed(20) == "swap"
    assert move_for_seed(40) == "insert_before"
    assert move_for_seed(60) == "insert_after"
    assert move_for_seed(80) == "range_reverse"
    assert move_for_seed(94) == "range_reverse"
    assert move_for_seed(95) == "full_reverse"
    assert move_for_seed(99) == "full_reverse"
    assert MOVE_BUCKETS[-1][0] == 100
    with pytest.raises(ValueError):
        move_for_seed(100)


def test_draw_move_positions_are_valid() -> None:
    rng = np.random.default_rng(5)
    n = 5
    for _ in range(500):
        m = draw_move(n, rng)
        assert m.pos0 != m.pos1
        assert 0 <= m.pos0 < n and 0 <= m.pos1 < n
        assert 1 <= m.length <= n - m.pos0


def test_two_columns_only_neighbour_is_reverse() -> None:
    rng = np.random.default_rng(0)
    for _ in range(20):
        assert neighbor((0, 1), rng) == (1, 0)


def test_degenerate_orders_raise() -> None:
    rng = np.random.default_rng(0)
    with pytest.raises(DegenerateNeighborError):
        neighbor((0,), rng)
    with pytest.raises(DegenerateNeighborError):
        neighbor((), rng)
    with pytest.raises(DegenerateNeighborError):
        draw_move(1, rng)
