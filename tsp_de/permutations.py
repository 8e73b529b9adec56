"""
Permutation and edge-set helpers shared by the variation strategies.

All helpers take tours as sequences of node indices in ``[0, n)`` and return
new objects; inputs are never modified.
"""

import math
import random
from typing import List, NamedTuple, Sequence

from .relations import DenseRelation


class Movement(NamedTuple):
    """Swap of the nodes at positions ``source`` and ``target``."""

    source: int
    target: int


def random_tour(n: int, rng: random.Random) -> List[int]:
    nodes = list(range(n))
    rng.shuffle(nodes)
    return nodes


# --- edge sets --------------------------------------------------------------


def edge_incidence(tour: Sequence[int], n: int = None) -> DenseRelation:
    """Symmetric boolean relation holding the edges of ``tour``, closing edge included."""
    n = len(tour) if n is None else n
    rel = DenseRelation(n, dtype=bool)
    size = len(tour)
    for i in range(size):
        rel.set(tour[i], tour[(i + 1) % size], True)
    return rel


def edge_union(a: DenseRelation, b: DenseRelation) -> DenseRelation:
    return a | b


def edge_difference(a: DenseRelation, b: DenseRelation) -> DenseRelation:
    """Symmetric difference of two edge sets."""
    return a ^ b


def contains_edges(mask: DenseRelation, tour: Sequence[int]) -> bool:
    size = len(tour)
    return all(mask.get(tour[i], tour[(i + 1) % size]) for i in range(size))


# --- list of movements ------------------------------------------------------


def list_of_movements(source: Sequence[int], target: Sequence[int]) -> List[Movement]:
    """
    Minimal ordered list of swaps turning ``source`` into ``target``.

    Position ``i`` is fixed left to right: when the node ``target[i]`` is not
    already there, it is swapped in from its (later) position ``j`` and
    ``Movement(j, i)`` is recorded.
    """
    work = list(source)
    where = {node: pos for pos, node in enumerate(work)}
    movements: List[Movement] = []
    for i, node in enumerate(target):
        j = where[node]
        if j == i:
            continue
        displaced = work[i]
        work[i], work[j] = node, displaced
        where[node], where[displaced] = i, j
        movements.append(Movement(source=j, target=i))
    return movements


def apply_movements(tour: Sequence[int], movements: Sequence[Movement]) -> List[int]:
    out = list(tour)
    for mv in movements:
        out[mv.source], out[mv.target] = out[mv.target], out[mv.source]
    return out


def reduce_movements(
    movements: Sequence[Movement], factor: float, mutation_type: int, rng: random.Random
) -> List[Movement]:
    """
    Shrink a movement list by the mutation factor.

    1: keep the first ``ceil(factor * size)`` movements.
    2: keep each movement when a uniform draw is ``<= factor``.
    3: shuffle, then keep the first ``ceil(factor * size)`` movements.
    """
    if mutation_type == 1:
        return list(movements[: math.ceil(factor * len(movements))])
    if mutation_type == 2:
        return [mv for mv in movements if rng.random() <= factor]
    if mutation_type == 3:
        shuffled = list(movements)
        rng.shuffle(shuffled)
        return shuffled[: math.ceil(factor * len(shuffled))]
    raise ValueError(f"Unknown mutation type {mutation_type}; expected 1, 2 or 3")


# --- relocation map ---------------------------------------------------------


def relocation_map(reference: Sequence[int], other: Sequence[int]) -> List[int]:
    """``map[i]`` is the position in ``other`` of the node at position ``i`` of ``reference``."""
    where = {node: pos for pos, node in enumerate(other)}
    return [where.get(node, i) for i, node in enumerate(reference)]


def relocate(tour: Sequence[int], mapping: Sequence[int]) -> List[int]:
    out = [0] * len(tour)
    for i, node in enumerate(tour):
        out[mapping[i]] = node
    return out


# --- relative position index ------------------------------------------------


def normalize(tour: Sequence[int]) -> List[float]:
    """Map each label ``v`` to ``v / (n - 1)``."""
    max_label = len(tour) - 1
    if max_label <= 0:
        return [0.0 for _ in tour]
    return [v / max_label for v in tour]


def decode_ranks(values: Sequence[float]) -> List[int]:
    """
    Rank decoding: the smallest value gets label 0, the next label 1, and so on.
    Equal values are ranked by position (stable sort).
    """
    ranks = [0] * len(values)
    order = sorted(range(len(values)), key=values.__getitem__)
    for rank, pos in enumerate(order):
        ranks[pos] = rank
    return ranks
