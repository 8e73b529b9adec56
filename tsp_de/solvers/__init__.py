from .base import Solver, SolveResult, Tour, VariationStrategy
from .exact import GurobiSolver, shortest_subtour
from .strategies import (
    STRATEGIES,
    AdjacencySetHybrid,
    ListOfMovements,
    PermutationMatrix,
    RelativePositionIndex,
    build_strategy,
)

__all__ = [
    "Solver",
    "SolveResult",
    "Tour",
    "VariationStrategy",
    "GurobiSolver",
    "shortest_subtour",
    "STRATEGIES",
    "AdjacencySetHybrid",
    "ListOfMovements",
    "PermutationMatrix",
    "RelativePositionIndex",
    "build_strategy",
]
