from __future__ import annotations

from typing import Dict, Iterable

import numpy as np

from .bolt import Bolt


def piece_array(bolt: Bolt) -> np.ndarray:
    # [N, 2, 2]: start/end xy of every live piece in draw order
    rows = [
        ((piece.start.x, piece.start.y), (piece.end.x, piece.end.y))
        for piece in bolt.iter_pieces()
    ]
    if not rows:
        return np.zeros((0, 2, 2))
    return np.asarray(rows, dtype=float)


def path_length(bolt: Bolt) -> float:
    P = piece_array(bolt)
    if len(P) == 0:
        return 0.0
    d = P[:, 1, :] - P[:, 0, :]
    return float(np.sqrt((d * d).sum(axis=1)).sum())


def count_pieces(bolt: Bolt) -> int:
    return sum(len(b.pieces) for b in bolt.iter_bolts())


def count_branches(bolt: Bolt) -> int:
    # Descendants only, the bolt itself excluded
    return sum(1 for _ in bolt.iter_bolts()) - 1


def tree_depth(bolt: Bolt) -> int:
    return max(b.depth for b in bolt.iter_bolts()) - bolt.depth


def bounding_box(bolts: Iterable[Bolt]) -> np.ndarray:
    # [[xmin, ymin], [xmax, ymax]], NaN when nothing is visible
    arrays = [piece_array(b).reshape(-1, 2) for b in bolts]
    arrays = [a for a in arrays if len(a)]
    if not arrays:
        return np.full((2, 2), np.nan)
    X = np.vstack(arrays)
    return np.stack([X.min(axis=0), X.max(axis=0)])


def summarize(bolt: Bolt) -> Dict[str, float]:
    box = bounding_box([bolt])
    extent = box[1] - box[0]
    return {
        "pieces": count_pieces(bolt),
        "branches": count_branches(bolt),
        "depth": tree_depth(bolt),
        "length": path_length(bolt),
        "extent_x": float(extent[0]),
        "extent_y": float(extent[1]),
    }
