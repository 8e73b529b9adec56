"""
Differential evolution for the traveling salesman problem, with four ways of
applying DE difference vectors to permutations and an exact sub-solver.
"""

__all__ = [
    "data",
    "evaluation",
    "evolutionary",
    "permutations",
    "relations",
]
