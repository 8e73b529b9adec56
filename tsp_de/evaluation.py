import random
from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .permutations import random_tour


@dataclass(frozen=True)
class Feasibility:
    feasible: bool
    message: str

    @property
    def status(self) -> str:
        return "Feasible" if self.feasible else "Infeasible"


class TSPProblem:
    """
    Symmetric TSP over nodes ``0..n-1``.

    ``cost_matrix[i, j]`` is the cost of visiting ``j`` right after ``i``; NaN
    marks an absent edge, which contributes nothing to a tour's cost.
    """

    def __init__(self, cost_matrix, name: str = "tsp"):
        matrix = np.asarray(cost_matrix, dtype=float)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"Cost matrix must be square, got shape {matrix.shape}")
        self.cost_matrix = matrix
        self.name = name

    @property
    def size(self) -> int:
        return self.cost_matrix.shape[0]

    def cost(self, source: int, target: int) -> float:
        w = self.cost_matrix[source, target]
        return 0.0 if np.isnan(w) else float(w)

    def evaluate(self, tour: Sequence[int]) -> float:
        if len(tour) < 2:
            return 0.0
        idx = np.asarray(tour, dtype=np.intp)
        return float(np.nansum(self.cost_matrix[idx, np.roll(idx, -1)]))

    def check_feasibility(self, tour: Sequence[int]) -> Feasibility:
        n = self.size
        if len(tour) != n:
            return Feasibility(False, f"Expected a tour with {n} nodes, but the tour has {len(tour)} nodes")
        for node in tour:
            if not 0 <= node < n:
                return Feasibility(False, f"Node {node} is not a valid node")
        counts = Counter(tour)
        for node in range(n):
            if counts[node] != 1:
                return Feasibility(False, f"Node {node} appears {counts[node]} times in this solution")
        return Feasibility(True, "A feasible solution has been found")

    def random_tour(self, rng: random.Random) -> List[int]:
        return random_tour(self.size, rng)

    def __repr__(self) -> str:
        return f"TSPProblem(name={self.name!r}, size={self.size})"
