"""
Exact TSP solving with Gurobi, optionally restricted to a subset of edges.

The model has one binary variable per active edge and a degree-2 constraint
per node. Subtours are removed lazily: every time Gurobi finds an integer
solution, the shortest cycle formed by the selected edges is cut off unless it
already visits every node.
"""

import logging
from typing import List, Optional, Sequence

import gurobipy as gp
from gurobipy import GRB

from ..evaluation import TSPProblem
from ..exceptions import SubSolverError
from ..permutations import contains_edges
from ..relations import DenseRelation, SquareRelation, SparseRelation
from .base import Solver, Tour

logger = logging.getLogger(__name__)

# Gurobi accepts seeds in [0, GRB.MAXINT].
_MAX_SEED = 2_000_000_000


def shortest_subtour(n: int, selected: SquareRelation) -> List[int]:
    """
    Walk the cycles formed by the selected edges and return the shortest one.

    Each walk starts at the lowest unvisited node and keeps moving to the
    lowest-index unvisited neighbor until none is left. Ties between cycles go
    to the one found first.
    """
    seen = [False] * n
    best: Optional[List[int]] = None
    for start in range(n):
        if seen[start]:
            continue
        cycle = []
        node = start
        while node is not None:
            seen[node] = True
            cycle.append(node)
            node = next((j for j in range(n) if not seen[j] and selected.get(node, j)), None)
        if best is None or len(cycle) < len(best):
            best = cycle
    return best or []


def _selected_edges(n: int, edges, values) -> SparseRelation:
    selected = SparseRelation(n, default=False)
    for (i, j), value in zip(edges, values):
        if value > 0.5:
            selected.set(i, j, True)
    return selected


def _subtour_elimination(model, where):
    if where != GRB.Callback.MIPSOL:
        return
    values = model.cbGetSolution(model._var_list)
    selected = _selected_edges(model._n, model._edges, values)
    tour = shortest_subtour(model._n, selected)
    if len(tour) < model._n:
        members = set(tour)
        inner = [var for (i, j), var in model._vars.items() if i in members and j in members]
        model.cbLazy(gp.quicksum(inner) <= len(tour) - 1)
        model._cuts += 1


class GurobiSolver(Solver):
    """
    Solves the TSP (or a restriction of it to the active edges) to optimality,
    or to the best incumbent found within the configured limits.
    """

    name = "exact"

    def __init__(
        self,
        seed: int = 0,
        time_limit: Optional[float] = None,
        node_limit: Optional[float] = None,
        verbose: int = 0,
    ):
        self.seed = seed
        self.time_limit = time_limit
        self.node_limit = node_limit
        self.verbose = verbose
        self._env = None

    @property
    def env(self) -> gp.Env:
        if self._env is None:
            env = gp.Env(empty=True)
            env.setParam("OutputFlag", 1 if self.verbose else 0)
            env.start()
            self._env = env
        return self._env

    def close(self) -> None:
        if self._env is not None:
            self._env.dispose()
            self._env = None

    def solve(
        self,
        problem: TSPProblem,
        active_edges: Optional[DenseRelation] = None,
        start: Optional[Sequence[int]] = None,
    ) -> Tour:
        n = problem.size
        if active_edges is None:
            active_edges = DenseRelation(n, dtype=bool, fill=True)
        if start is not None and not contains_edges(active_edges, start):
            logger.warning("warm start uses inactive edges; solving without it")
            start = None

        model = gp.Model("tsp", env=self.env)
        try:
            self._configure(model)
            edge_vars = SparseRelation(n)
            for i, j in active_edges.pairs():
                edge_vars.set(
                    i, j, model.addVar(obj=problem.cost(i, j), vtype=GRB.BINARY, name=f"x_{i}_{j}")
                )
            model.update()

            if start is not None:
                size = len(start)
                start_edges = SparseRelation(n, default=False)
                for k in range(size):
                    start_edges.set(start[k], start[(k + 1) % size], True)
                for (i, j), var in edge_vars.items():
                    var.Start = 1.0 if start_edges.get(i, j) else 0.0

            for i in range(n):
                incident = [edge_vars.get(i, j) for j in range(n) if j != i and (i, j) in edge_vars]
                model.addConstr(gp.quicksum(incident) == 2, name=f"deg_{i}")

            model._n = n
            model._vars = dict(edge_vars.items())
            model._edges = list(model._vars)
            model._var_list = edge_vars.values()
            model._cuts = 0
            model.optimize(_subtour_elimination)

            if model.SolCount == 0:
                raise SubSolverError(
                    "Exact solver found no feasible tour", status=model.Status, runtime=model.Runtime
                )
            values = model.getAttr("X", model._var_list)
            tour = shortest_subtour(n, _selected_edges(n, model._edges, values))
            if len(tour) < n:
                raise SubSolverError(
                    f"Exact solver incumbent is not a Hamiltonian cycle ({len(tour)} of {n} nodes)",
                    status=model.Status,
                    runtime=model.Runtime,
                )
            logger.debug(
                "exact solve: status=%s obj=%.2f cuts=%d runtime=%.3fs",
                model.Status,
                model.ObjVal,
                model._cuts,
                model.Runtime,
            )
            return tour
        finally:
            model.dispose()

    def _configure(self, model: gp.Model) -> None:
        model.Params.LazyConstraints = 1
        model.Params.Seed = int(self.seed) % _MAX_SEED
        model.Params.OutputFlag = 1 if self.verbose else 0
        if self.time_limit is not None:
            model.Params.TimeLimit = self.time_limit
        if self.node_limit is not None:
            model.Params.NodeLimit = self.node_limit

    def __repr__(self) -> str:
        return (
            f"GurobiSolver(seed={self.seed}, time_limit={self.time_limit}, "
            f"node_limit={self.node_limit})"
        )
