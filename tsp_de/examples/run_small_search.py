import logging
import random
from pathlib import Path

from tsp_de.data import load_tsplib_instances
from tsp_de.evolutionary import DEConfig, DifferentialEvolution
from tsp_de.solvers import build_strategy


def main():
    data_root = Path("data/tsplib")
    if not data_root.exists():
        raise FileNotFoundError("Place TSPLIB files in data/tsplib")

    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(message)s", datefmt="%H:%M:%S")
    instances = load_tsplib_instances(data_root, max_nodes=100, max_instances=3)

    cfg = DEConfig(population_size=20, iterations_limit=200, time_limit=10.0, random_seed=123)
    for inst in instances:
        for name in ("list-movements", "permutation-matrix", "relative-position-index"):
            strategy = build_strategy(name, inst.problem, mutation_factor=0.5, mutation_type=2)
            search = DifferentialEvolution(inst.problem, strategy, cfg, rng=random.Random(cfg.random_seed))
            result = search.run()
            result.optimum = inst.optimum
            gap = f"{100 * result.gap:.2f}%" if inst.optimum else "n/a"
            print(f"{inst.name} {name}: cost={result.length:.1f} gap={gap} generations={result.generations}")


if __name__ == "__main__":
    main()
