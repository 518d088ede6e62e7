"""
Purpose:
- Generate reproducible exact-decimal 0/1 knapsack instances within the model bounds
  (<= 15 items, weights/prices/capacity <= 100).
- Supports: seed-based reproducibility, distributions, positive/negative correlation,
  capacity ratio, decimal places, batch generation and file output (line file + JSON manifest).

Usage:
- import functions, or run `knapsack-generate 5 10 15 --output-dir instances`.

Notes:
- Reproducibility: each instance stores the seed used in meta.
  Regenerating the same instance with the same seed + parameters will produce identical items.
- Capacity_ratio controls hardness: smaller ratios generally make packing harder.
- (weight_dist / price_dist) let you simulate different real-world regimes
    > uniform : uniform sampling
    > normal : bell-curve around mid-range
    > zipf : few large, many small
- Correlation:
    > positive correlation: price proportional to weight with gaussian noise
    > negative correlation: price roughly inverse to weight with noise
- Values are drawn as integers in units of 10^-places and converted to Decimal,
  so no float ever reaches the model.
"""

import argparse
import json
import logging
import os
import random
from decimal import Decimal, ROUND_DOWN
from typing import Dict, List, Optional, Sequence, Tuple

from knapsack_model import ProblemInstance
from knapsack_rules import (
    CURRENCY_SIGN,
    FILE_ENCODING,
    MAX_ITEM_PRICE,
    MAX_ITEM_WEIGHT,
    MAX_ITEMS_PER_LINE,
    MAX_PACKAGE_WEIGHT,
    divide,
)

Range = Tuple[str, str]


# --- Utilities / RNG ---
def _get_rng(seed: Optional[int]):
    """Return (seed_used, random.Random instance)."""
    if seed is None:
        seed = random.randrange(0, 2**32)
    rng = random.Random(seed)
    return seed, rng


def _units(value: str, places: int) -> int:
    # "12.5" with 2 places -> 1250
    return int(Decimal(value).scaleb(places))


def _from_units(units: int, places: int) -> Decimal:
    return Decimal(f"{units}E-{places}")


# --- Sampling functions (integer units) ---
def _sample_uniform(rng: random.Random, low: int, high: int) -> int:
    return rng.randint(low, high)


def _sample_normal_int(rng: random.Random, mean: float, std: float, low: int, high: int) -> int:
    # draw until inside bounds to avoid extremes
    for _ in range(10):
        val = int(round(rng.gauss(mean, std)))
        if low <= val <= high:
            return val
    # fallback clamp
    return max(low, min(high, int(round(mean))))


def _sample_zipf_int(rng: random.Random, a: float, low: int, high: int, unit: int = 1) -> int:
    # inverse transform for a Pareto-like tail, then clamp; a in ~1.2 - 2.0
    # the offset is drawn in whole numbers, `unit` converts it to grid units
    x = rng.random()
    pareto = int(low + ((1.0 - x) ** (-1.0 / (a - 1.0))) * unit)
    return max(low, min(high, pareto))


def _sampler(rng: random.Random, dist: str, low: int, high: int, unit: int = 1):
    if dist == "uniform":
        return lambda: _sample_uniform(rng, low, high)
    if dist == "normal":
        mean = (low + high) / 2.0
        std = max(1.0, (high - low) / 6.0)
        return lambda: _sample_normal_int(rng, mean, std, low, high)
    if dist == "zipf":
        return lambda: _sample_zipf_int(rng, a=1.8, low=low, high=high, unit=unit)
    raise ValueError("Unknown distribution: " + str(dist))


def _check_range(name: str, rng_: Range, upper: Decimal) -> None:
    low, high = Decimal(rng_[0]), Decimal(rng_[1])
    if not (0 < low <= high <= upper):
        raise ValueError(f"{name} must satisfy 0 < low <= high <= {upper}, got {rng_}")


# --- Instance generator ---
def generate_instance(
    n_items: int,
    weight_range: Range = ("1", "70"),
    price_range: Range = ("1", "100"),
    capacity_ratio: float = 0.5,
    correlation: Optional[str] = None,   # None | 'positive' | 'negative'
    weight_dist: str = "uniform",        # 'uniform' | 'normal' | 'zipf'
    price_dist: str = "uniform",         # same options
    weight_places: int = 2,
    price_places: int = 2,
    capacity_places: int = 1,
    seed: Optional[int] = None
) -> Dict:
    """
    Returns a dict:
    {
      "meta": { ... seed, params ... },
      "capacity": Decimal,
      "items": [{"label": 1, "weight": Decimal, "price": Decimal}, ...]
    }
    Reproducible: instance['meta']['seed'] holds the RNG seed used.
    """
    if not 0 <= n_items <= MAX_ITEMS_PER_LINE:
        raise ValueError(f"n_items must be in [0, {MAX_ITEMS_PER_LINE}], got {n_items}")
    if correlation not in (None, "positive", "negative"):
        raise ValueError("Unknown correlation: " + str(correlation))
    _check_range("weight_range", weight_range, MAX_ITEM_WEIGHT)
    _check_range("price_range", price_range, MAX_ITEM_PRICE)

    seed_used, rng = _get_rng(seed)

    wlow, whigh = _units(weight_range[0], weight_places), _units(weight_range[1], weight_places)
    plow, phigh = _units(price_range[0], price_places), _units(price_range[1], price_places)

    sample_weight = _sampler(rng, weight_dist, wlow, whigh, unit=10 ** weight_places)
    sample_free_price = _sampler(rng, price_dist, plow, phigh, unit=10 ** price_places)

    def sample_price_from_weight(w):
        # If correlation not set, draw from price_dist; otherwise derive from weight + noise
        if correlation is None:
            return sample_free_price()
        wnorm = (w - wlow) / max(1, (whigh - wlow))
        if correlation == "positive":
            base = plow + wnorm * (phigh - plow)
        else:  # 'negative'
            base = plow + (1.0 - wnorm) * (phigh - plow)
        noise = rng.gauss(0, 0.08 * (phigh - plow))
        p = int(round(base + noise))
        return max(plow, min(phigh, p))

    items = []
    total_units = 0
    for label in range(1, n_items + 1):
        w = sample_weight()
        p = sample_price_from_weight(w)
        items.append({
            "label": label,
            "weight": _from_units(w, weight_places),
            "price": _from_units(p, price_places),
        })
        total_units += w

    # capacity is truncated to capacity_places and clamped to the package bound
    total_weight = _from_units(total_units, weight_places)
    ratio = Decimal(str(capacity_ratio))
    capacity = divide(total_weight * ratio, Decimal(1), scale=capacity_places, rounding=ROUND_DOWN)
    capacity = min(capacity, MAX_PACKAGE_WEIGHT)

    return {
        "meta": {
            "n_items": n_items,
            "weight_range": list(weight_range),
            "price_range": list(price_range),
            "capacity_ratio": capacity_ratio,
            "correlation": correlation,
            "weight_dist": weight_dist,
            "price_dist": price_dist,
            "places": [weight_places, price_places, capacity_places],
            "seed": seed_used
        },
        "capacity": capacity,
        "items": items
    }


def to_problem_instance(instance: Dict) -> ProblemInstance:
    return ProblemInstance.build(
        instance["capacity"],
        [(it["label"], it["weight"], it["price"]) for it in instance["items"]],
    )


def format_line(instance: Dict) -> str:
    """Render a generated instance in the input line format read by knapsack_parser."""
    triples = " ".join(
        f"({it['label']},{it['weight']:f},{CURRENCY_SIGN}{it['price']:f})" for it in instance["items"]
    )
    return f"{instance['capacity']:f} : {triples}"


# --- I/O helpers ---
def save_lines(instances: Sequence[Dict], path: str):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding=FILE_ENCODING) as f:
        for inst in instances:
            f.write(format_line(inst) + "\n")


def save_manifest_json(records: List[Dict], path: str):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding=FILE_ENCODING) as f:
        json.dump(records, f, indent=2)


# --- Batch generator (multiple sizes) ---
def generate_batch(
    ns: List[int],
    output_dir: str = "knapsack_instances",
    copies: int = 1,
    base_seed: int = 42,
    force_overwrite: bool = False,
    **params
) -> List[Dict]:
    """
    Generate `copies` instances for each n in ns and save them as one line file.
    Naming: {output_dir}/knapsack_seed{base_seed}.txt (+ .json manifest)
    Returns list of metadata records, one per line written.
    """
    os.makedirs(output_dir, exist_ok=True)
    base_name = f"knapsack_seed{base_seed}"
    txt_path = os.path.join(output_dir, base_name + ".txt")
    json_path = os.path.join(output_dir, base_name + ".json")

    if not force_overwrite and os.path.exists(txt_path):
        logging.getLogger(__name__).warning("exists (skipping): %s", txt_path)
        return [{"txt": txt_path, "json": json_path, "status": "skipped_exists"}]

    instances = []
    records = []
    for idx, n in enumerate(n for n in ns for _ in range(copies)):
        seed = (base_seed + idx) & 0xFFFFFFFF
        inst = generate_instance(n_items=n, seed=seed, **params)
        instances.append(inst)
        records.append({
            "line": idx + 1, "n": n, "seed": inst["meta"]["seed"],
            "capacity": f"{inst['capacity']:f}", "txt": txt_path, "status": "saved"
        })

    save_lines(instances, txt_path)
    save_manifest_json(records, json_path)
    logging.getLogger(__name__).info("Saved %d instance(s) to %s", len(instances), txt_path)
    return records


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate reproducible knapsack instance files.")
    parser.add_argument("sizes", nargs="+", type=int, help="Item counts, one instance per size (max 15)")
    parser.add_argument("--output-dir", default="knapsack_instances")
    parser.add_argument("--copies", type=int, default=1, help="Instances per size")
    parser.add_argument("--seed", type=int, default=42, help="Base seed")
    parser.add_argument("--capacity-ratio", type=float, default=0.5)
    parser.add_argument("--correlation", choices=["positive", "negative"], default=None)
    parser.add_argument("--weight-dist", choices=["uniform", "normal", "zipf"], default="uniform")
    parser.add_argument("--price-dist", choices=["uniform", "normal", "zipf"], default="uniform")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing batch")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        records = generate_batch(
            args.sizes,
            output_dir=args.output_dir,
            copies=args.copies,
            base_seed=args.seed,
            force_overwrite=args.force,
            capacity_ratio=args.capacity_ratio,
            correlation=args.correlation,
            weight_dist=args.weight_dist,
            price_dist=args.price_dist,
        )
    except ValueError as e:
        parser.error(str(e))
    return 0 if records else 1


if __name__ == "__main__":
    raise SystemExit(main())
