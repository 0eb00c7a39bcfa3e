"""Visualisation helpers (Matplotlib).

These sit outside the simulation core: they only read the current buffers.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection

from .grid import FieldGrid

__all__ = [
    "hsl_to_rgb",
    "city_colours",
    "road_segments",
    "plot_city",
    "plot_history",
]

BACKGROUND = "#0b0d10"
ROAD_THRESHOLD = 0.62
# Neighbour search order for road links; the first maximum wins.
ROAD_DIRECTIONS = ((1, 0), (0, 1), (-1, 0), (0, -1))


def hsl_to_rgb(h, s, l) -> np.ndarray:
    """Vectorised HSL to RGB.

    ``h`` in degrees (any range, wrapped to [0, 360)), ``s`` and ``l`` in
    [0, 1].  Returns uint8 with a trailing RGB axis.
    """
    h, s, l = np.broadcast_arrays(np.asarray(h, dtype=np.float64),
                                  np.asarray(s, dtype=np.float64),
                                  np.asarray(l, dtype=np.float64))
    h = np.mod(h, 360.0)
    c = (1.0 - np.abs(2.0 * l - 1.0)) * s
    hp = h / 60.0
    x = c * (1.0 - np.abs(np.mod(hp, 2.0) - 1.0))
    zero = np.zeros_like(c)

    sector = np.floor(hp).astype(int)
    r = np.choose(sector, [c, x, zero, zero, x, c], mode="clip")
    g = np.choose(sector, [x, c, c, x, zero, zero], mode="clip")
    b = np.choose(sector, [zero, zero, x, c, c, x], mode="clip")

    m = l - c / 2.0
    rgb = np.stack([r + m, g + m, b + m], axis=-1)
    return np.round(rgb * 255.0).astype(np.uint8)


def city_colours(grid: FieldGrid) -> np.ndarray:
    """Colour image ``(height, width, 3)``.

    Hue runs from teal (empty) to amber (dense), saturation follows
    infrastructure and lightness follows resources and density.
    """
    dens = grid.current("density").astype(np.float64)
    infra = grid.current("infrastructure").astype(np.float64)
    rsrc = grid.current("resources").astype(np.float64)

    hue = 200.0 - 170.0 * dens
    sat = 0.25 + 0.55 * (0.2 + 0.8 * infra)
    lig = 0.06 + 0.70 * (0.1 + 0.9 * rsrc) * (0.3 + 0.7 * dens)
    return hsl_to_rgb(hue, sat, lig)


def road_segments(grid: FieldGrid, threshold: float = ROAD_THRESHOLD) -> List[Dict]:
    """Links from high-infrastructure cells to their strongest neighbour.

    Each entry has ``start`` and ``end`` cell coordinates (end wrapped onto
    the torus) and a grey ``level`` in [90, 210].
    """
    inf = grid.current("infrastructure")
    segments = []
    for y, x in zip(*np.nonzero(inf > threshold)):
        best_val = -1.0
        best = None
        for dx, dy in ROAD_DIRECTIONS:
            nx, ny = grid.wrap(x + dx, y + dy)
            if inf[ny, nx] > best_val:
                best_val = float(inf[ny, nx])
                best = (nx, ny)
        level = int(np.floor(90 + 120 * min(1.0, (float(inf[y, x]) + best_val) * 0.5)))
        segments.append({"start": (int(x), int(y)), "end": (int(best[0]), int(best[1])), "level": level})
    return segments


def _save_or_show(fig, save_path: Path | None) -> None:
    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path.with_suffix(".png"), dpi=200, bbox_inches="tight")
        fig.savefig(save_path.with_suffix(".svg"), bbox_inches="tight")
    else:
        plt.show()
    plt.close(fig)


def plot_city(
    grid: FieldGrid,
    draw_roads: bool = True,
    title: str = "City as Organism",
    save_path: Path | None = None,
) -> None:
    """Render the city image with an optional faint road overlay."""
    fig, ax = plt.subplots(figsize=(8, 8 * grid.height / grid.width + 0.5))
    fig.patch.set_facecolor(BACKGROUND)
    ax.imshow(city_colours(grid), interpolation="nearest", origin="upper")

    if draw_roads:
        lines, colours = [], []
        for seg in road_segments(grid):
            (x1, y1), (x2, y2) = seg["start"], seg["end"]
            # Skip links that wrap across the image edge
            if abs(x2 - x1) > 1 or abs(y2 - y1) > 1:
                continue
            lines.append([(x1, y1), (x2, y2)])
            v = seg["level"] / 255.0
            colours.append((v, v, v))
        if lines:
            ax.add_collection(LineCollection(lines, colors=colours, linewidths=0.8, alpha=0.25))

    ax.set_title(title, color="white")
    ax.set_axis_off()
    _save_or_show(fig, save_path)


def plot_history(
    history: Sequence[Dict[str, float]],
    keys: Sequence[str] = ("density_mean", "infrastructure_mean", "resources_mean", "signal_mean"),
    save_path: Path | None = None,
) -> None:
    """Plot summary time series recorded by `run_once`."""
    ticks = [h["tick"] for h in history]

    fig, ax = plt.subplots(figsize=(7, 4))
    for key in keys:
        ax.plot(ticks, [h[key] for h in history], label=key.replace("_mean", ""))

    ax.set_xlabel("tick")
    ax.set_ylabel("mean value")
    ax.set_ylim(0, 1)
    ax.set_title("Field Means Over Time")
    ax.grid(True, ls=":", lw=0.5)
    ax.legend()
    _save_or_show(fig, save_path)
