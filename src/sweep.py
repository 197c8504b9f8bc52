import argparse
import csv
import json
import logging
import time
from dataclasses import replace
from pathlib import Path

import numpy as np
from tqdm import tqdm

from lightning_sim.metrics import summarize
from lightning_sim.presets import get_preset
from lightning_sim.simulation import Simulation

METRICS = ["pieces", "branches", "depth", "length", "extent_x", "extent_y"]


def build_config(preset_name, branching_chance, survivability, args):
    base = get_preset(preset_name).config
    bolt = replace(
        base.bolt,
        branching_chance=float(branching_chance),
        branching_survivability_modifier=float(survivability),
        max_depth=args.max_depth,
    )
    return replace(base, bolt=bolt, auto_spawn=False, seed=args.seed_base)


def run_once(cfg, max_steps, sample_stride, seed, verbose=False):
    # One root bolt per run, followed until it dies or max_steps runs out
    cfg = replace(cfg, seed=int(seed))
    sim = Simulation(cfg)
    bolt = sim.spawn_bolt()

    peak = {m: 0.0 for m in METRICS}
    steps = 0
    step_range = tqdm(range(max_steps), desc="    Steps", leave=False) if verbose else range(max_steps)
    for t in step_range:
        sim.step()
        steps += 1
        if not bolt.alive:
            break
        if (t % sample_stride) != 0:
            continue
        for k, v in summarize(bolt).items():
            if not np.isnan(v):
                peak[k] = max(peak[k], v)

    out = {f"peak_{k}": v for k, v in peak.items()}
    out["lifetime_steps"] = steps
    out["segments_emitted"] = bolt.segments_emitted
    out["finished"] = int(not bolt.alive)
    return out


def main():
    p = argparse.ArgumentParser(description="Parameter sweep for directional lightning bolts.")
    # Grid over branching parameters
    p.add_argument("--chance-min", type=float, default=0.0)
    p.add_argument("--chance-max", type=float, default=0.2)
    p.add_argument("--surv-min", type=float, default=0.5)
    p.add_argument("--surv-max", type=float, default=0.9)
    p.add_argument("--grid", type=int, default=5, help="grid size per axis")

    p.add_argument("--preset", type=str, default="storm", help="directional preset to start from")
    p.add_argument("--max-depth", type=int, default=4, help="branch generations cap")

    # Run control
    p.add_argument("--steps", type=int, default=600, help="step cap per run")
    p.add_argument("--stride", type=int, default=5, help="sample every k steps")
    p.add_argument("--seeds", type=int, default=3)
    p.add_argument("--seed-base", type=int, default=123)

    # Output
    p.add_argument("--out", type=str, default="sweep_out")
    p.add_argument("--verbose", action="store_true", help="Show a progress bar for each run")

    args = p.parse_args()
    logging.basicConfig(level=logging.INFO)

    outdir = Path(args.out)
    outdir.mkdir(parents=True, exist_ok=True)

    # Save a copy of arguments for provenance
    with open(outdir / "args.json", "w") as f:
        json.dump(vars(args), f, indent=2)

    fieldnames = [
        "branching_chance", "survivability", "seed",
        *[f"peak_{m}" for m in METRICS],
        "lifetime_steps", "segments_emitted", "finished",
    ]
    csv_path = outdir / "results.csv"

    chance_vals = np.linspace(args.chance_min, args.chance_max, args.grid)
    surv_vals = np.linspace(args.surv_min, args.surv_max, args.grid)
    total_runs = args.grid * args.grid * args.seeds

    print(f"\nStarting parameter sweep:")
    print(f"  - Preset: {args.preset}")
    print(f"  - Parameter grid: {args.grid}x{args.grid}")
    print(f"  - Seeds per point: {args.seeds}")
    print(f"  - Total simulations: {total_runs}")
    print(f"  - Output directory: {outdir}\n")

    start_time = time.time()
    with open(csv_path, "w", newline="") as fcsv:
        writer = csv.DictWriter(fcsv, fieldnames=fieldnames)
        writer.writeheader()

        with tqdm(total=total_runs, desc="Overall Progress", unit="sim", miniters=1) as pbar:
            for i, chance in enumerate(chance_vals):
                for j, surv in enumerate(surv_vals):
                    cfg = build_config(args.preset, chance, surv, args)
                    for s in range(args.seeds):
                        seed = args.seed_base + 1000*i + 10*j + s
                        res = run_once(cfg, args.steps, args.stride, seed, args.verbose)
                        writer.writerow({
                            "branching_chance": float(chance),
                            "survivability": float(surv),
                            "seed": int(seed),
                            **res,
                        })
                        fcsv.flush()

                        pbar.update(1)
                        pbar.set_postfix({'chance': f'{chance:.2f}', 'surv': f'{surv:.2f}'})

    print(f"\nAll done in {time.time() - start_time:.1f}s. Results saved to: {csv_path}")
    print(f"Next step: python plot_heatmaps.py --csv {csv_path} --out plots")


if __name__ == "__main__":
    main()
