import logging
import random

import numpy as np
import pytest

from tsp_de.evaluation import TSPProblem
from tsp_de.solvers.base import VariationStrategy


TINY_TSP = """NAME : tiny
COMMENT : 3-4-5 rectangle
TYPE : TSP
DIMENSION : 4
EDGE_WEIGHT_TYPE : {weight_type}
NODE_COORD_SECTION
1 0 0
2 3 0
3 3 4
4 0 4
EOF
"""

TINY_OPT_TOUR = """NAME : tiny.opt.tour
TYPE : TOUR
DIMENSION : 4
TOUR_SECTION
1
2
3
4
-1
EOF
"""

# Symmetric 4-node matrix used by the hand-computed scenarios.
SMALL_MATRIX = [
    [0, 1, 5, 2],
    [1, 0, 3, 6],
    [5, 3, 0, 4],
    [2, 6, 4, 0],
]


def euclidean_problem(n: int, seed: int = 0) -> TSPProblem:
    gen = np.random.default_rng(seed)
    pts = gen.uniform(0, 100, size=(n, 2))
    dist = np.rint(np.linalg.norm(pts[:, None, :] - pts[None, :, :], axis=-1))
    return TSPProblem(dist, name=f"rand{n}")


def random_tours(n: int, count: int, rng: random.Random):
    tours = []
    for _ in range(count):
        nodes = list(range(n))
        rng.shuffle(nodes)
        tours.append(nodes)
    return tours


class RecordingStrategy(VariationStrategy):
    """Wraps a strategy and keeps every (target, partners, trial) it sees."""

    def __init__(self, inner: VariationStrategy):
        self.inner = inner
        self.name = inner.name
        self.partners = inner.partners
        self.random_partner = inner.random_partner
        self.calls = []

    def produce_trial(self, target, partners, rng):
        trial = self.inner.produce_trial(target, partners, rng)
        self.calls.append((tuple(target), tuple(tuple(p) for p in partners), tuple(trial)))
        return trial


@pytest.fixture
def small_problem():
    return TSPProblem(SMALL_MATRIX, name="small")


@pytest.fixture
def tsp_file(tmp_path):
    def write(weight_type: str = "EUC_2D", with_optimum: bool = False, name: str = "tiny"):
        path = tmp_path / f"{name}.tsp"
        path.write_text(TINY_TSP.format(weight_type=weight_type))
        if with_optimum:
            (tmp_path / f"{name}.opt.tour").write_text(TINY_OPT_TOUR)
        return path

    return write


@pytest.fixture(autouse=True)
def reset_package_logger():
    package_logger = logging.getLogger("tsp_de")
    saved = (package_logger.handlers[:], package_logger.level, package_logger.propagate)
    yield
    package_logger.handlers, package_logger.level, package_logger.propagate = saved
