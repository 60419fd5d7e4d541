import math
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
from optuna.distributions import (
    BaseDistribution,
    CategoricalDistribution,
    FloatDistribution,
    IntDistribution,
)
from scipy.stats import qmc
from sklearn.model_selection import ParameterGrid

SEARCH_STRATEGIES = ("grid", "latin_hypercube")


def parse_space(space: Mapping[str, Any]) -> Dict[str, BaseDistribution]:
    """
    Turn a YAML search space into Optuna distributions.

    A list becomes a categorical choice; a mapping with ``low``/``high``
    (plus optional ``type``, ``log`` and ``step``) becomes a numeric range.
    """
    dists: Dict[str, BaseDistribution] = {}
    for name, spec in space.items():
        if isinstance(spec, (list, tuple)):
            dists[name] = CategoricalDistribution(list(spec))
        elif isinstance(spec, Mapping):
            low, high = spec["low"], spec["high"]
            log = bool(spec.get("log", False))
            kind = spec.get("type")
            if kind is None:
                kind = "int" if isinstance(low, int) and isinstance(high, int) and not log else "float"
            if kind == "int":
                dists[name] = IntDistribution(int(low), int(high), log=log, step=int(spec.get("step", 1)))
            elif kind == "float":
                dists[name] = FloatDistribution(float(low), float(high), log=log, step=spec.get("step"))
            else:
                raise ValueError(f"Unknown parameter type for '{name}': {kind}")
        else:
            dists[name] = CategoricalDistribution([spec])
    return dists


def _grid_values(name: str, dist: BaseDistribution) -> List[Any]:
    if isinstance(dist, CategoricalDistribution):
        return list(dist.choices)
    if isinstance(dist, IntDistribution) and not dist.log:
        return list(range(dist.low, dist.high + 1, dist.step))
    if isinstance(dist, FloatDistribution) and dist.step is not None:
        n = int(round((dist.high - dist.low) / dist.step)) + 1
        return [float(dist.low + i * dist.step) for i in range(n)]
    raise ValueError(f"Parameter '{name}' is continuous; list explicit values to use it in a grid")


def grid_candidates(
    space: Mapping[str, Any],
    fixed: Optional[Mapping[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """Full cross product of the declared parameter values."""
    dists = parse_space(space)
    grid = {name: _grid_values(name, dist) for name, dist in dists.items()}
    return [{**(fixed or {}), **params} for params in ParameterGrid(grid)]


def _from_unit(u: float, dist: BaseDistribution) -> Any:
    """Map a point of [0, 1) onto a distribution."""
    if isinstance(dist, CategoricalDistribution):
        n = len(dist.choices)
        return dist.choices[min(int(u * n), n - 1)]

    if isinstance(dist, IntDistribution):
        if dist.log:
            value = math.exp(math.log(dist.low) + u * (math.log(dist.high) - math.log(dist.low)))
            return int(min(max(round(value), dist.low), dist.high))
        n = (dist.high - dist.low) // dist.step + 1
        return int(dist.low + dist.step * min(int(u * n), n - 1))

    if dist.log:
        return float(math.exp(math.log(dist.low) + u * (math.log(dist.high) - math.log(dist.low))))
    value = dist.low + u * (dist.high - dist.low)
    if dist.step is not None:
        value = dist.low + round((value - dist.low) / dist.step) * dist.step
    return float(min(max(value, dist.low), dist.high))


def latin_hypercube_candidates(
    space: Mapping[str, Any],
    size: int,
    fixed: Optional[Mapping[str, Any]] = None,
    random_state: int = 42,
) -> List[Dict[str, Any]]:
    """Space-filling sample of `size` candidates constrained to the declared ranges."""
    if size < 1:
        raise ValueError(f"Latin hypercube size must be positive, got {size}")
    dists = parse_space(space)
    names = list(dists)
    sampler = qmc.LatinHypercube(d=len(names), seed=random_state)
    unit = np.asarray(sampler.random(n=size))

    candidates = []
    for row in unit:
        params = {name: _from_unit(float(u), dists[name]) for name, u in zip(names, row)}
        candidates.append({**(fixed or {}), **params})
    return candidates


def make_candidates(model_cfg: Mapping[str, Any], random_state: int = 42) -> List[Dict[str, Any]]:
    """Build the candidate list for one model family from its config section."""
    strategy = model_cfg.get("search", "grid")
    space = model_cfg.get("space") or {}
    fixed = model_cfg.get("fixed") or {}

    if not space:
        return [dict(fixed)]
    if strategy == "grid":
        return grid_candidates(space, fixed)
    if strategy == "latin_hypercube":
        return latin_hypercube_candidates(space, int(model_cfg.get("size", 10)), fixed, random_state)
    raise ValueError(f"Unknown search strategy: {strategy} (expected one of {SEARCH_STRATEGIES})")
