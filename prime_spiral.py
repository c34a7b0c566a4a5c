# prime_spiral.py
"""
Golden-angle spiral of cached primes (r = sqrt(p), theta = p * golden angle).
Optional: needs matplotlib.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

# Optional for PNG
try:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    HAVE_MPL = True
except Exception:
    HAVE_MPL = False


GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


def spiral_coords(ns: Sequence[int]) -> Tuple[List[float], List[float]]:
    xs, ys = [], []
    for n in ns:
        r = math.sqrt(n)
        th = n * GOLDEN_ANGLE
        xs.append(r * math.cos(th))
        ys.append(r * math.sin(th))
    return xs, ys


def save_spiral_png(primes: Sequence[int], png_path: str, *,
                    bw: bool = False,
                    show_grid: bool = True,
                    show_labels: bool = True) -> None:
    """
    Scatter every cached prime on the golden-angle spiral and save to png_path.
    Raises RuntimeError when matplotlib is not installed.
    """
    if not HAVE_MPL:
        raise RuntimeError("matplotlib not available")

    xs, ys = spiral_coords(primes)

    fig = plt.figure(figsize=(7, 7), dpi=150)
    try:
        ax = plt.gca()
        ax.set_aspect('equal', 'box')

        color = "0.05" if bw else "tab:orange"
        if xs:
            plt.scatter(xs, ys, s=4, alpha=0.85, color=color, linewidths=0,
                        label=f"cached primes ({len(xs)})")

        if show_grid:
            ax.minorticks_on()
            ax.grid(True, which='major', color="0.80", linewidth=0.6)
            ax.grid(True, which='minor', color="0.92", linewidth=0.3)

        if show_labels:
            plt.xlabel(r"$x=\sqrt{p}\cos(p\varphi)$", fontsize=9)
            plt.ylabel(r"$y=\sqrt{p}\sin(p\varphi)$", fontsize=9)

        largest = primes[-1] if primes else 0
        plt.title(f"Prime cache spiral (p <= {largest})", fontsize=11)
        if xs:
            plt.legend(loc="lower right", frameon=False, fontsize=8)
        plt.tight_layout()
        plt.savefig(png_path, dpi=150)
    finally:
        plt.close(fig)
