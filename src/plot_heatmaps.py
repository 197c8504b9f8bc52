import argparse
from pathlib import Path

import pandas as pd
import matplotlib.pyplot as plt

METRICS = [
    "peak_pieces", "peak_branches", "peak_depth", "peak_length",
    "lifetime_steps", "segments_emitted",
]


def plot_one(df, metric, outdir):
    # Average over seeds
    g = df.groupby(["branching_chance", "survivability"], as_index=False)[metric].mean()
    # Pivot to grid
    table = g.pivot(index="survivability", columns="branching_chance", values=metric).sort_index(ascending=True)
    # Plot
    fig, ax = plt.subplots(figsize=(6,5))
    im = ax.imshow(table.values, origin="lower", aspect="auto",
                   extent=[table.columns.min(), table.columns.max(),
                           table.index.min(), table.index.max()])
    ax.set_xlabel("branching_chance")
    ax.set_ylabel("branching_survivability_modifier")
    ax.set_title(f"{metric}")
    plt.colorbar(im, ax=ax)
    # Save
    outpath = Path(outdir) / f"{metric}.png"
    fig.tight_layout()
    fig.savefig(outpath, dpi=200)
    plt.close(fig)
    return outpath


def main():
    ap = argparse.ArgumentParser(description="Plot heatmaps from sweep CSV.")
    ap.add_argument("--csv", type=str, required=True)
    ap.add_argument("--out", type=str, default="plots")
    args = ap.parse_args()

    outdir = Path(args.out); outdir.mkdir(parents=True, exist_ok=True)
    df = pd.read_csv(args.csv)

    for m in METRICS:
        if m not in df.columns:
            print(f"Skip missing column: {m}")
            continue
        path = plot_one(df, m, outdir)
        print(f"Saved: {path}")


if __name__ == "__main__":
    main()
