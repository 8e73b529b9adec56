import argparse
import logging
import random
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from tsp_de.data import Instance, load_instance
from tsp_de.evolutionary import DEConfig, DifferentialEvolution, check_config
from tsp_de.exceptions import ConfigurationError, InstanceFormatError, SubSolverError
from tsp_de.solvers.base import SolveResult, VariationStrategy
from tsp_de.solvers.exact import GurobiSolver
from tsp_de.solvers.strategies import STRATEGIES, AdjacencySetHybrid, build_strategy

logger = logging.getLogger("tsp_de")

EXACT = "exact"
ALGORITHMS = sorted(STRATEGIES) + [EXACT]

# Algorithm parameters accepted through ``--param name=value``.
PARAM_TYPES = {
    "population-size": int,
    "target-value": float,
    "mutation-factor": float,
    "mutation-type": int,
    "crossover-factor": float,
    "submip-time-limit": float,
    "submip-node-limit": float,
    "verbose": int,
}


def setup_logging(verbose: int = 0) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", datefmt="%H:%M:%S"))
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def parse_params(items: Sequence[str]) -> Dict[str, object]:
    params: Dict[str, object] = {}
    for item in items:
        name, sep, value = item.partition("=")
        name = name.strip()
        if not sep:
            raise ConfigurationError(f"Parameter {item!r} is not of the form name=value")
        if name not in PARAM_TYPES:
            raise ConfigurationError(f"Unknown parameter {name!r}", {"available": sorted(PARAM_TYPES)})
        try:
            params[name] = PARAM_TYPES[name](value.strip())
        except ValueError:
            raise ConfigurationError(f"Invalid value for {name}: {value!r}") from None
    return params


def solve_exact(instance: Instance, args, params) -> SolveResult:
    node_limit = args.iterations_limit
    if node_limit is not None and node_limit < 0:
        node_limit = None
    solver = GurobiSolver(
        seed=args.seed,
        time_limit=args.time_limit,
        node_limit=node_limit,
        verbose=params.get("verbose", 0),
    )
    start = time.perf_counter()
    try:
        tour = solver.solve(instance.problem)
    finally:
        solver.close()
    return SolveResult(
        tour=tour,
        length=instance.problem.evaluate(tour),
        solver_name=EXACT,
        feasibility=instance.problem.check_feasibility(tour),
        runtime=time.perf_counter() - start,
        optimum=instance.optimum,
    )


def check_limits(args, params) -> None:
    if args.time_limit is not None and args.time_limit < 0:
        raise ConfigurationError("--time-limit must be non-negative", {"time_limit": args.time_limit})
    for name in ("submip-time-limit", "submip-node-limit"):
        if name in params and params[name] < 0:
            raise ConfigurationError(f"{name} must be non-negative", {name: params[name]})


def build_config(args, params) -> DEConfig:
    cfg = DEConfig(random_seed=args.seed)
    if "population-size" in params:
        cfg.population_size = params["population-size"]
    if args.iterations_limit is not None:
        cfg.iterations_limit = args.iterations_limit
    if args.time_limit is not None:
        cfg.time_limit = args.time_limit
    if "target-value" in params:
        cfg.target_value = params["target-value"]
    return cfg


def _build_strategy(name: str, instance: Optional[Instance], params, sub_solver=None) -> VariationStrategy:
    return build_strategy(
        name,
        instance.problem if instance is not None else None,
        mutation_factor=params.get("mutation-factor", 0.5),
        mutation_type=params.get("mutation-type", 2),
        crossover_factor=params.get("crossover-factor", 0.9),
        sub_solver=sub_solver,
    )


def solve_de(
    instance: Instance, args, params, cfg: DEConfig, strategy: Optional[VariationStrategy] = None
) -> SolveResult:
    # The hybrid is built here because it needs the loaded problem.
    sub_solver = None
    if strategy is None:
        sub_solver = GurobiSolver(
            seed=args.seed,
            time_limit=params.get("submip-time-limit"),
            node_limit=params.get("submip-node-limit"),
            verbose=params.get("verbose", 0),
        )
        strategy = _build_strategy(args.algorithm, instance, params, sub_solver)
    search = DifferentialEvolution(instance.problem, strategy, cfg, rng=random.Random(args.seed))
    try:
        result = search.run()
    finally:
        if sub_solver is not None:
            sub_solver.close()
    result.optimum = instance.optimum
    return result


def report(result: SolveResult, print_solution: bool) -> None:
    if not print_solution:
        print(f"{result.feasibility.status} {result.length:.4f}")
        return
    print(f"Feasibility: {result.feasibility.status} ({result.feasibility.message})")
    print(f"Cost: {result.length:.4f}")
    print(f"Tour: {result.tour}")
    if result.optimum is not None:
        print(f"Gap: {100 * result.gap:.2f}% (optimum {result.optimum:.4f})")


def run(args) -> int:
    params = parse_params(args.param)
    setup_logging(params.get("verbose", 0))
    algorithm = args.algorithm.lower()
    if algorithm not in ALGORITHMS:
        raise ConfigurationError(f"Algorithm {args.algorithm!r} is not valid", {"available": ALGORITHMS})
    args.algorithm = algorithm
    check_limits(args, params)
    cfg = strategy = None
    if algorithm != EXACT:
        cfg = build_config(args, params)
        check_config(cfg, STRATEGIES[algorithm].partners, algorithm)
        if algorithm != AdjacencySetHybrid.name:
            strategy = _build_strategy(algorithm, None, params)
    t0 = time.perf_counter()
    instance = load_instance(Path(args.instance))
    logger.info("loaded %s (%d nodes) in %.2fs", instance.name, instance.problem.size, time.perf_counter() - t0)
    if algorithm == EXACT:
        result = solve_exact(instance, args, params)
    else:
        result = solve_de(instance, args, params, cfg, strategy)
    report(result, args.print_solution)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tsp-de",
        description="Differential evolution algorithms for the traveling salesman problem",
    )
    parser.add_argument("--instance", required=True, help="Path to a TSPLIB instance file.")
    parser.add_argument(
        "--algorithm", required=True, help=f"Algorithm used to solve the problem ({', '.join(ALGORITHMS)})."
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed of the random number generator.")
    parser.add_argument("--time-limit", type=float, default=None, help="Maximum running time in seconds.")
    parser.add_argument(
        "--iterations-limit",
        type=int,
        default=None,
        help="Maximum number of generations (-1 for no limit); node limit for the exact algorithm.",
    )
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help=f"Algorithm parameter, repeatable ({', '.join(PARAM_TYPES)}).",
    )
    parser.add_argument(
        "--print-solution", action="store_true", help="Print the best solution found at the end."
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except (ConfigurationError, InstanceFormatError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    except SubSolverError as exc:
        print(f"SOLVER ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
