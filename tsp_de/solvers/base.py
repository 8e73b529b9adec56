import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..evaluation import Feasibility, TSPProblem


Tour = List[int]


class Solver(ABC):
    name: str = "base"

    @abstractmethod
    def solve(self, problem: TSPProblem) -> Tour:
        raise NotImplementedError


class VariationStrategy(ABC):
    """
    Builds one trial tour for a population member.

    ``partners`` is the number of distinct population members, other than the
    target, the strategy consumes. ``random_partner`` tells that the strategy
    also draws a fresh random tour of its own.
    """

    name: str = "base"
    partners: int = 3
    random_partner: bool = False

    @abstractmethod
    def produce_trial(
        self, target: Sequence[int], partners: Sequence[Sequence[int]], rng: random.Random
    ) -> Tour:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


@dataclass
class SolveResult:
    tour: Tour
    length: float
    solver_name: str
    feasibility: Feasibility
    generations: int = 0
    runtime: float = 0.0
    optimum: Optional[float] = None
    history: List[float] = field(default_factory=list)

    @property
    def gap(self) -> float:
        if self.optimum is None or math.isclose(self.optimum, 0.0):
            return float("inf")
        return (self.length - self.optimum) / self.optimum
