import math
import random

import numpy as np
import pytest

from tsp_de.evaluation import TSPProblem


def test_evaluate_sums_closed_tour(small_problem):
    assert small_problem.evaluate([0, 1, 2, 3]) == 1 + 3 + 4 + 2
    assert small_problem.evaluate([1, 0, 3, 2]) == 1 + 2 + 4 + 3
    assert small_problem.evaluate([0, 2, 1, 3]) == 5 + 3 + 6 + 2


def test_evaluate_is_rotation_and_direction_invariant(small_problem):
    base = small_problem.evaluate([0, 1, 2, 3])
    assert small_problem.evaluate([2, 3, 0, 1]) == base
    assert small_problem.evaluate([3, 2, 1, 0]) == base


def test_missing_edges_cost_nothing():
    matrix = np.array([[0, 2, np.nan], [2, 0, 3], [np.nan, 3, 0]], dtype=float)
    problem = TSPProblem(matrix)
    assert problem.evaluate([0, 1, 2]) == 5.0
    assert problem.cost(0, 2) == 0.0


def test_trivial_tours_cost_zero(small_problem):
    assert small_problem.evaluate([]) == 0.0
    assert small_problem.evaluate([2]) == 0.0


def test_feasible_tour(small_problem):
    result = small_problem.check_feasibility([3, 1, 0, 2])
    assert result.feasible
    assert result.status == "Feasible"


def test_wrong_length_reported(small_problem):
    result = small_problem.check_feasibility([0, 1, 2])
    assert not result.feasible
    assert result.status == "Infeasible"
    assert "4 nodes" in result.message and "3 nodes" in result.message


def test_invalid_node_reported(small_problem):
    result = small_problem.check_feasibility([0, 1, 2, 7])
    assert not result.feasible
    assert result.message == "Node 7 is not a valid node"


def test_duplicate_node_reported(small_problem):
    result = small_problem.check_feasibility([0, 1, 1, 3])
    assert not result.feasible
    assert result.message == "Node 1 appears 2 times in this solution"


def test_random_tour_uses_given_stream(small_problem):
    a = small_problem.random_tour(random.Random(9))
    b = small_problem.random_tour(random.Random(9))
    assert a == b
    assert small_problem.check_feasibility(a).feasible


def test_rejects_non_square_matrix():
    with pytest.raises(ValueError):
        TSPProblem(np.zeros((2, 3)))


def test_size_and_repr(small_problem):
    assert small_problem.size == 4
    assert "small" in repr(small_problem)
    assert not math.isnan(small_problem.cost(1, 3))
