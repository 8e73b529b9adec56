import enum
import logging
import random
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .evaluation import TSPProblem
from .exceptions import ConfigurationError
from .solvers.base import SolveResult, VariationStrategy

logger = logging.getLogger(__name__)

# Best cost within this distance of the target value ends the run.
TARGET_TOLERANCE = 0.01
UNBOUNDED = -1


@dataclass
class DEConfig:
    population_size: int = 30
    iterations_limit: int = 50
    time_limit: Optional[float] = None
    target_value: float = float("-inf")
    random_seed: int = 0


@dataclass(frozen=True)
class Member:
    tour: Tuple[int, ...]
    cost: float


class RunState(enum.Enum):
    INIT = "init"
    EVOLVING = "evolving"
    TERMINATED = "terminated"


def check_config(config: DEConfig, partners: int, strategy_name: str = "strategy") -> None:
    """Raise ``ConfigurationError`` when ``config`` cannot drive a strategy needing ``partners`` partners."""
    required = partners + 1
    if config.population_size < required:
        raise ConfigurationError(
            f"Strategy {strategy_name!r} needs a population of at least {required}",
            {"population_size": config.population_size},
        )
    if config.iterations_limit < UNBOUNDED:
        raise ConfigurationError(
            "iterations_limit must be -1 (unbounded) or non-negative",
            {"iterations_limit": config.iterations_limit},
        )
    if config.time_limit is not None and config.time_limit < 0:
        raise ConfigurationError("time_limit must be non-negative", {"time_limit": config.time_limit})


class DifferentialEvolution:
    """
    Generational DE loop, generic over the variation strategy.

    Each generation builds one trial per member; a trial replaces its member
    only when strictly cheaper. The offspring buffer becomes the population
    once every member has been processed.
    """

    def __init__(
        self,
        problem: TSPProblem,
        strategy: VariationStrategy,
        config: DEConfig,
        rng: random.Random = None,
    ):
        check_config(config, strategy.partners, strategy.name)
        self.problem = problem
        self.strategy = strategy
        self.cfg = config
        self.rng = rng or random.Random(config.random_seed)
        self.state = RunState.INIT
        self.population: List[Member] = []
        self.best: Optional[Member] = None
        self.generation = 0
        self.history: List[float] = []
        self._start: Optional[float] = None

    @property
    def elapsed(self) -> float:
        return 0.0 if self._start is None else time.perf_counter() - self._start

    def initialize(self) -> None:
        self._start = time.perf_counter()
        self.population = []
        self.best = None
        for _ in range(self.cfg.population_size):
            tour = self.problem.random_tour(self.rng)
            member = Member(tuple(tour), self.problem.evaluate(tour))
            self.population.append(member)
            self._consider(member)
        self.history = [self.best.cost]
        self.state = RunState.EVOLVING

    def _consider(self, member: Member) -> None:
        if self.best is None or member.cost < self.best.cost:
            self.best = member

    def should_terminate(self) -> bool:
        limit = self.cfg.iterations_limit
        if limit != UNBOUNDED and self.generation >= limit:
            return True
        if self.best.cost - self.cfg.target_value <= TARGET_TOLERANCE:
            return True
        if self.cfg.time_limit is not None and self.elapsed >= self.cfg.time_limit:
            return True
        return False

    def select_partners(self, index: int) -> List[int]:
        chosen: List[int] = []
        while len(chosen) < self.strategy.partners:
            idx = self.rng.randrange(self.cfg.population_size)
            if idx == index or idx in chosen:
                continue
            chosen.append(idx)
        return chosen

    def step(self) -> None:
        offspring: List[Member] = []
        for i, member in enumerate(self.population):
            partners: Sequence[Tuple[int, ...]] = [
                self.population[idx].tour for idx in self.select_partners(i)
            ]
            trial = self.strategy.produce_trial(member.tour, partners, self.rng)
            cost = self.problem.evaluate(trial)
            if cost < member.cost:
                child = Member(tuple(trial), cost)
                offspring.append(child)
                self._consider(child)
            else:
                offspring.append(member)
        self.population = offspring
        self.generation += 1
        self.history.append(self.best.cost)
        logger.debug("generation %d: best=%.4f", self.generation, self.best.cost)

    def run(self) -> SolveResult:
        logger.info(
            "starting %s on %s (population=%d, partners=%d%s, seed=%d)",
            self.strategy.name,
            self.problem.name,
            self.cfg.population_size,
            self.strategy.partners,
            " + random tour" if self.strategy.random_partner else "",
            self.cfg.random_seed,
        )
        self.initialize()
        while not self.should_terminate():
            self.step()
        self.state = RunState.TERMINATED
        logger.info(
            "finished after %d generations in %.2fs: best=%.4f",
            self.generation,
            self.elapsed,
            self.best.cost,
        )
        tour = list(self.best.tour)
        return SolveResult(
            tour=tour,
            length=self.best.cost,
            solver_name=self.strategy.name,
            feasibility=self.problem.check_feasibility(tour),
            generations=self.generation,
            runtime=self.elapsed,
            history=list(self.history),
        )
