"""
Variation strategies: four ways of carrying the DE difference vector over to
permutations. Each one turns a target tour and a few partner tours into a
trial tour that is always a permutation of the same nodes.
"""

import random
from typing import Dict, Optional, Sequence, Type

from ..evaluation import TSPProblem
from ..exceptions import ConfigurationError
from ..permutations import (
    apply_movements,
    decode_ranks,
    edge_difference,
    edge_incidence,
    edge_union,
    list_of_movements,
    normalize,
    random_tour,
    reduce_movements,
    relocate,
    relocation_map,
)
from ..relations import DenseRelation
from .base import Tour, VariationStrategy
from .exact import GurobiSolver


def _check_unit_interval(name: str, value: float) -> float:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be between 0 and 1", {name: value})
    return float(value)


class AdjacencySetHybrid(VariationStrategy):
    """
    Mutation over edge sets, crossover by an exact sub-solver.

    The mutant edge set is ``E3 | (E1 ^ E2)`` for two partners and one fresh
    random tour. Adding the target's own edges gives the set of edges the
    sub-solver may use, warm-started from the target, so a feasible tour
    always exists within it.
    """

    name = "code"
    partners = 2
    random_partner = True

    def __init__(self, problem: TSPProblem, sub_solver: GurobiSolver):
        self.problem = problem
        self.sub_solver = sub_solver

    def crossover_mask(
        self, target: Sequence[int], partners: Sequence[Sequence[int]], rng: random.Random
    ) -> DenseRelation:
        n = len(target)
        x1, x2 = partners
        x3 = random_tour(n, rng)
        difference = edge_difference(edge_incidence(x1, n), edge_incidence(x2, n))
        mutant = edge_union(edge_incidence(x3, n), difference)
        return edge_union(edge_incidence(target, n), mutant)

    def produce_trial(self, target, partners, rng) -> Tour:
        mask = self.crossover_mask(target, partners, rng)
        return self.sub_solver.solve(self.problem, mask, target)


class ListOfMovements(VariationStrategy):
    """
    The difference between two partners is the list of swaps turning one into
    the other; a reduced copy of that list is applied to a third partner.
    """

    name = "list-movements"
    partners = 3

    def __init__(self, mutation_factor: float = 0.5, mutation_type: int = 2):
        self.mutation_factor = _check_unit_interval("mutation_factor", mutation_factor)
        if mutation_type not in (1, 2, 3):
            raise ConfigurationError("mutation_type must be 1, 2 or 3", {"mutation_type": mutation_type})
        self.mutation_type = int(mutation_type)

    def produce_trial(self, target, partners, rng) -> Tour:
        p1, p2, p3 = partners
        movements = list_of_movements(p3, p2)
        movements = reduce_movements(movements, self.mutation_factor, self.mutation_type, rng)
        return apply_movements(p1, movements)

    def __repr__(self) -> str:
        return f"ListOfMovements(mutation_factor={self.mutation_factor}, mutation_type={self.mutation_type})"


class PermutationMatrix(VariationStrategy):
    """Relocates the nodes of one partner the way a second partner maps onto a third."""

    name = "permutation-matrix"
    partners = 3

    def produce_trial(self, target, partners, rng) -> Tour:
        p1, p2, p3 = partners
        return relocate(p1, relocation_map(p2, p3))


class RelativePositionIndex(VariationStrategy):
    """
    Classic DE/rand/1/bin on tours read as real vectors (label / (n - 1)),
    decoded back to a tour by rank order.
    """

    name = "relative-position-index"
    partners = 3

    def __init__(self, mutation_factor: float = 0.5, crossover_factor: float = 0.9):
        self.mutation_factor = float(mutation_factor)
        self.crossover_factor = _check_unit_interval("crossover_factor", crossover_factor)

    def produce_trial(self, target, partners, rng) -> Tour:
        p1, p2, base = (normalize(p) for p in partners)
        current = normalize(target)
        n = len(current)
        forced = rng.randrange(n)
        trial = []
        for j in range(n):
            if rng.random() <= self.crossover_factor or j == forced:
                trial.append(base[j] + self.mutation_factor * (p1[j] - p2[j]))
            else:
                trial.append(current[j])
        return decode_ranks(trial)

    def __repr__(self) -> str:
        return (
            f"RelativePositionIndex(mutation_factor={self.mutation_factor}, "
            f"crossover_factor={self.crossover_factor})"
        )


STRATEGIES: Dict[str, Type[VariationStrategy]] = {
    AdjacencySetHybrid.name: AdjacencySetHybrid,
    ListOfMovements.name: ListOfMovements,
    PermutationMatrix.name: PermutationMatrix,
    RelativePositionIndex.name: RelativePositionIndex,
}


def build_strategy(
    name: str,
    problem: TSPProblem,
    mutation_factor: float = 0.5,
    mutation_type: int = 2,
    crossover_factor: float = 0.9,
    sub_solver: Optional[GurobiSolver] = None,
) -> VariationStrategy:
    key = name.lower()
    if key == AdjacencySetHybrid.name:
        return AdjacencySetHybrid(problem, sub_solver or GurobiSolver())
    if key == ListOfMovements.name:
        return ListOfMovements(mutation_factor, mutation_type)
    if key == PermutationMatrix.name:
        return PermutationMatrix()
    if key == RelativePositionIndex.name:
        return RelativePositionIndex(mutation_factor, crossover_factor)
    raise ConfigurationError(f"Unknown algorithm {name!r}", {"available": sorted(STRATEGIES)})
