"""Visualization utilities for generated transit networks."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection

from transitgen.log_config import get_logger

if TYPE_CHECKING:
    from transitgen.density_grid import DensityGrid
    from transitgen.routes import TransitNetwork

logger = get_logger(__name__)


def export_network_map(
    network: TransitNetwork,
    output_path: Path,
    grid: DensityGrid | None = None,
    dpi: int = 150,
) -> None:
    """Export a PNG map of the network over the density grid.

    Grid cells are drawn as a grayscale background, route edges as colored
    segments (one color per route) and stations as dots sized by value.

    Args:
        network: Network to render.
        output_path: Path to save PNG file.
        grid: Optional density grid drawn as background.
        dpi: Output resolution.

    Raises:
        ValueError: If the network has no edges.
        RuntimeError: If rendering or saving fails.
    """
    output_path = Path(output_path)
    logger.info(f"Exporting network map to {output_path}")

    if not network.edges:
        raise ValueError("Cannot create map: network has no edges")

    fig = None
    try:
        fig, ax = plt.subplots(figsize=(10, 10))

        if grid is not None and len(grid) > 0:
            cells = np.array([[p.x, p.y, p.value] for p in grid], dtype=float)
            ax.scatter(
                cells[:, 0],
                cells[:, 1],
                c=cells[:, 2],
                cmap="Greys",
                s=4,
                marker="s",
                linewidths=0,
                alpha=0.6,
            )
            logger.debug(f"Plotted {len(cells):,} grid cells")

        cmap = plt.get_cmap("tab20")
        segments = []
        colors = []
        for route in network.routes:
            color = cmap(route.route_id % cmap.N)
            for edge in network.route_edges(route):
                segments.append([edge.source.coordinates, edge.target.coordinates])
                colors.append(color)
        ax.add_collection(LineCollection(segments, colors=colors, linewidths=1.2))

        stations = network.stations()
        sx = [p.x for p in stations]
        sy = [p.y for p in stations]
        sizes = [8 + 12 * p.value for p in stations]
        ax.scatter(sx, sy, s=sizes, color="red", zorder=3)

        ax.set_aspect("equal")
        ax.autoscale_view()
        ax.set_title(
            f"Transit Network (routes={len(network.routes)}, "
            f"edges={len(network.edges)}, stations={len(stations)})",
            fontsize=12,
        )
        plt.tight_layout()

        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, format="png", bbox_inches="tight")
    except Exception as e:
        if output_path.exists():
            output_path.unlink()
        raise RuntimeError(f"Failed to export network map to {output_path}: {e}") from e
    finally:
        if fig is not None:
            plt.close(fig)

    logger.info(
        f"Saved network map → {output_path} ({output_path.stat().st_size / 1024:.1f} KB)"
    )
