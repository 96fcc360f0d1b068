import itertools
import random

import pytest

from silonet.errors import InvalidInputError
from silonet.services.assignment.solver import (
    assignment_cost,
    naive_assignment,
    pad_cost_matrix,
    solve_assignment,
    solve_rectangular,
)


def _random_matrix(rng: random.Random, n: int) -> list[list[float]]:
    return [[round(rng.uniform(0, 100), 3) for _ in range(n)] for _ in range(n)]


def _brute_force_cost(matrix: list[list[float]]) -> float:
    n = len(matrix)
    return min(sum(matrix[i][perm[i]] for i in range(n)) for perm in itertools.permutations(range(n)))


def test_solve_assignment_matches_brute_force_for_small_matrices():
    rng = random.Random(2024)
    for n in range(1, 7):
        for _ in range(15):
            matrix = _random_matrix(rng, n)
            assignment = solve_assignment(matrix)

            assert sorted(assignment) == list(range(n))
            assert assignment_cost(assignment, matrix) == pytest.approx(_brute_force_cost(matrix))


def test_optimal_never_worse_than_naive_baseline():
    rng = random.Random(7)
    for n in range(1, 9):
        for _ in range(10):
            matrix = _random_matrix(rng, n)
            optimal_cost = assignment_cost(solve_assignment(matrix), matrix)
            _, naive_cost = naive_assignment(matrix)
            assert optimal_cost <= naive_cost + 1e-9


def test_greedy_baseline_is_suboptimal_where_expected():
    matrix = [
        [1.0, 2.0],
        [2.0, 100.0],
    ]

    naive, naive_cost = naive_assignment(matrix)
    optimal = solve_assignment(matrix)

    assert naive == [0, 1]
    assert naive_cost == pytest.approx(101.0)
    assert optimal == [1, 0]
    assert assignment_cost(optimal, matrix) == pytest.approx(4.0)


def test_empty_matrix_gives_empty_assignment():
    assert solve_assignment([]) == []
    assert naive_assignment([]) == ([], 0.0)


def test_all_equal_costs_still_produce_bijection():
    matrix = [[5.0] * 4 for _ in range(4)]
    assignment = solve_assignment(matrix)
    assert sorted(assignment) == [0, 1, 2, 3]
    assert assignment_cost(assignment, matrix) == pytest.approx(20.0)


def test_non_square_matrix_is_rejected():
    with pytest.raises(InvalidInputError) as excinfo:
        solve_assignment([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    assert excinfo.value.actual == (2, 3)


def test_ragged_matrix_is_rejected():
    with pytest.raises(InvalidInputError):
        solve_assignment([[1.0, 2.0], [3.0]])


def test_pad_cost_matrix_uses_sentinel():
    padded, rows, cols = pad_cost_matrix([[1.0, 2.0, 3.0]], sentinel=9999.0)
    assert (rows, cols) == (1, 3)
    assert padded == [
        [1.0, 2.0, 3.0],
        [9999.0, 9999.0, 9999.0],
        [9999.0, 9999.0, 9999.0],
    ]


def test_solve_rectangular_reports_padded_pairings_as_unmatched():
    # Three agents, two tasks: agent 1 is the worst fit everywhere.
    matrix = [
        [1.0, 8.0],
        [9.0, 9.0],
        [7.0, 2.0],
    ]

    pairs = solve_rectangular(matrix)

    assert (0, 0) in pairs
    assert (2, 1) in pairs
    assert (1, None) in pairs
    assert len(pairs) == 3


def test_naive_assignment_prefers_lower_index_on_ties():
    matrix = [
        [3.0, 3.0],
        [3.0, 3.0],
    ]
    assignment, cost = naive_assignment(matrix)
    assert assignment == [0, 1]
    assert cost == pytest.approx(6.0)
