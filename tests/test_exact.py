import itertools
import logging
import random

import pytest

from conftest import euclidean_problem, random_tours
from tsp_de.evolutionary import DEConfig, DifferentialEvolution
from tsp_de.exceptions import SubSolverError
from tsp_de.permutations import edge_incidence, edge_union
from tsp_de.relations import DenseRelation, SparseRelation
from tsp_de.solvers.exact import GurobiSolver, shortest_subtour
from tsp_de.solvers.strategies import AdjacencySetHybrid


def _selection(n, edges):
    rel = SparseRelation(n, default=False)
    for i, j in edges:
        rel.set(i, j, True)
    return rel


def _edges(tour):
    return sorted(edge_incidence(tour).pairs())


def _brute_force(problem):
    n = problem.size
    return min(problem.evaluate([0, *rest]) for rest in itertools.permutations(range(1, n)))


@pytest.fixture
def solver():
    s = GurobiSolver(seed=3)
    yield s
    s.close()


def test_shortest_subtour_picks_smaller_cycle():
    selected = _selection(7, [(0, 1), (1, 2), (2, 0), (3, 4), (4, 5), (5, 6), (6, 3)])
    assert shortest_subtour(7, selected) == [0, 1, 2]


def test_shortest_subtour_walks_lowest_neighbor_first():
    selected = _selection(5, [(0, 2), (2, 4), (4, 1), (1, 3), (3, 0)])
    assert shortest_subtour(5, selected) == [0, 2, 4, 1, 3]


def test_shortest_subtour_tie_goes_to_first_cycle():
    selected = _selection(6, [(0, 3), (3, 4), (4, 0), (1, 2), (2, 5), (5, 1)])
    assert shortest_subtour(6, selected) == [0, 3, 4]


def test_full_solve_matches_brute_force(solver):
    problem = euclidean_problem(7, seed=11)
    tour = solver.solve(problem)
    assert sorted(tour) == list(range(7))
    assert problem.evaluate(tour) == pytest.approx(_brute_force(problem))


def test_solve_with_explicit_full_mask(solver):
    problem = euclidean_problem(8, seed=2)
    full = DenseRelation(8, dtype=bool, fill=True)
    assert problem.evaluate(solver.solve(problem, full)) == pytest.approx(_brute_force(problem))


def test_single_tour_mask_returns_that_tour(solver):
    problem = euclidean_problem(9, seed=4)
    tour = random_tours(9, 1, random.Random(1))[0]
    result = solver.solve(problem, edge_incidence(tour), start=tour)
    assert _edges(result) == _edges(tour)


def test_restricted_solve_never_worse_than_its_tours(solver):
    problem = euclidean_problem(10, seed=6)
    rng = random.Random(7)
    for _ in range(3):
        a, b = random_tours(10, 2, rng)
        mask = edge_union(edge_incidence(a), edge_incidence(b))
        result = solver.solve(problem, mask, start=a)
        assert all(mask.get(result[k], result[(k + 1) % 10]) for k in range(10))
        assert problem.evaluate(result) <= min(problem.evaluate(a), problem.evaluate(b)) + 1e-6


def test_mask_without_hamiltonian_cycle_raises(solver):
    problem = euclidean_problem(6, seed=1)
    mask = edge_incidence([0, 1, 2, 3, 4, 5])
    mask.set(5, 0, False)
    with pytest.raises(SubSolverError) as err:
        solver.solve(problem, mask)
    assert err.value.status is not None


def test_warm_start_outside_mask_is_dropped(solver, caplog):
    problem = euclidean_problem(8, seed=9)
    a = [0, 1, 2, 3, 4, 5, 6, 7]
    b = [0, 2, 4, 6, 1, 3, 5, 7]
    c = [0, 4, 1, 5, 2, 6, 3, 7]
    mask = edge_union(edge_incidence(a), edge_incidence(b))
    with caplog.at_level(logging.WARNING, logger="tsp_de.solvers.exact"):
        result = solver.solve(problem, mask, start=c)
    assert sorted(result) == list(range(8))
    assert any("warm start" in rec.message for rec in caplog.records)


def test_env_is_reused_and_closed():
    s = GurobiSolver()
    env = s.env
    assert s.env is env
    s.close()
    assert s._env is None


def test_hybrid_search_with_exact_sub_solver():
    problem = euclidean_problem(8, seed=12)
    sub_solver = GurobiSolver(seed=1, node_limit=1000)
    try:
        strategy = AdjacencySetHybrid(problem, sub_solver)
        cfg = DEConfig(population_size=5, iterations_limit=2, random_seed=1)
        search = DifferentialEvolution(problem, strategy, cfg)
        search.initialize()
        initial_best = search.best.cost
        while not search.should_terminate():
            search.step()
    finally:
        sub_solver.close()
    assert search.generation == 2
    assert search.best.cost <= initial_best
    for member in search.population:
        assert sorted(member.tour) == list(range(8))
