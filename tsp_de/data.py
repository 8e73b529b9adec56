import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import networkx as nx
import numpy as np
import tsplib95

from .evaluation import TSPProblem
from .exceptions import InstanceFormatError

logger = logging.getLogger(__name__)

# EUC_2D: Euclidean distance rounded to the nearest integer.
# ATT: pseudo-Euclidean, ceil(sqrt(d^2 / 10)).
SUPPORTED_EDGE_WEIGHT_TYPES = ("EUC_2D", "ATT")


@dataclass
class Instance:
    name: str
    path: Path
    problem: TSPProblem
    graph: nx.Graph
    optimum: Optional[float]


def _solution_candidates(path: Path) -> Iterable[Path]:
    yield path.with_suffix(".opt.tour")
    for ext in (".opt.tour", ".opt", ".tour"):
        yield path.parent / "solutions" / f"{path.stem}{ext}"


def _read_dimension(path: Path) -> Optional[int]:
    with path.open("r") as f:
        for line in f:
            if "DIMENSION" in line.upper():
                parts = line.replace(":", " ").split()
                for token in parts:
                    if token.isdigit():
                        return int(token)
    return None


def _load_optimum(problem, path: Path) -> Optional[float]:
    for candidate in _solution_candidates(path):
        if not candidate.exists():
            continue
        try:
            tour_file = tsplib95.parse(candidate.read_text())
            nodes = list(tour_file.tours[0])
            dist = 0.0
            for i in range(len(nodes)):
                a = nodes[i]
                b = nodes[(i + 1) % len(nodes)]
                dist += problem.get_weight(a, b)
            return float(dist)
        except Exception as exc:
            logger.warning("ignoring unreadable tour file %s: %s", candidate, exc)
            continue
    return None


def cost_matrix(graph: nx.Graph) -> np.ndarray:
    """Dense cost matrix with nodes relabelled ``0..n-1`` in sorted label order."""
    nodes = sorted(graph.nodes())
    matrix = nx.to_numpy_array(graph, nodelist=nodes, weight="weight", dtype=float)
    np.fill_diagonal(matrix, 0.0)
    return matrix


def load_instance(path: Path) -> Instance:
    path = Path(path)
    problem = tsplib95.load(path)
    weight_type = problem.edge_weight_type
    if weight_type not in SUPPORTED_EDGE_WEIGHT_TYPES:
        raise InstanceFormatError(
            f"This loader cannot read data of type {weight_type}. "
            f"Only {' and '.join(SUPPORTED_EDGE_WEIGHT_TYPES)} are supported.",
            {"path": str(path)},
        )
    if not problem.dimension:
        raise InstanceFormatError("Instance has no DIMENSION", {"path": str(path)})
    graph = problem.get_graph()
    matrix = cost_matrix(graph)
    if matrix.shape[0] != problem.dimension:
        raise InstanceFormatError(
            f"Expected {problem.dimension} nodes, found {matrix.shape[0]}", {"path": str(path)}
        )
    name = problem.name or path.stem
    optimum = _load_optimum(problem, path)
    logger.debug("loaded %s: %d nodes, %s, optimum=%s", name, matrix.shape[0], weight_type, optimum)
    return Instance(
        name=name,
        path=path,
        problem=TSPProblem(matrix, name=name),
        graph=graph,
        optimum=optimum,
    )


def load_tsplib_instances(
    root: Path, max_nodes: Optional[int] = None, max_instances: Optional[int] = None
) -> List[Instance]:
    tsp_files = sorted(Path(root).glob("*.tsp"))
    instances: List[Instance] = []
    for p in tsp_files:
        if max_nodes is not None:
            dim = _read_dimension(p)
            if dim is not None and dim > max_nodes:
                continue
        try:
            instances.append(load_instance(p))
        except InstanceFormatError as exc:
            logger.info("skipping %s: %s", p.name, exc.message)
            continue
        if max_instances is not None and len(instances) >= max_instances:
            break
    return instances
