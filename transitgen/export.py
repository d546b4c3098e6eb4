"""JSON serialization of generated transit networks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from transitgen.config import FormattingConfig
from transitgen.density_grid import Point
from transitgen.log_config import get_logger
from transitgen.routes import Edge, Route, TransitNetwork

logger = get_logger(__name__)


def _point_to_dict(point: Point) -> dict[str, Any]:
    return {"x": int(point.x), "y": int(point.y), "value": float(point.value)}


def _point_from_dict(data: dict[str, Any]) -> Point:
    return Point(int(data["x"]), int(data["y"]), float(data["value"]))


def network_to_dict(network: TransitNetwork) -> dict[str, Any]:
    """Convert a network to JSON-friendly Python types.

    Stations are listed once each; edges keep their full endpoint values so
    the file can be reloaded without the density grid.
    """

    def _to_python(obj: Any):
        """Convert common non-JSON types to JSON-friendly Python types."""
        if isinstance(obj, (np.floating, np.integer)):
            return obj.item()
        if isinstance(obj, tuple):
            return list(obj)
        return obj

    return {
        "metadata": {k: _to_python(v) for k, v in network.metadata.items()},
        "stations": [_point_to_dict(p) for p in network.stations()],
        "edges": [
            {
                "id": edge_id,
                "source": _point_to_dict(edge.source),
                "target": _point_to_dict(edge.target),
            }
            for edge_id, edge in enumerate(network.edges)
        ],
        "routes": [
            {
                "id": route.route_id,
                "edges": list(route.edge_ids),
                "required_trips": route.required_trips,
                "stalled": route.stalled,
            }
            for route in network.routes
        ],
    }


def network_from_dict(data: dict[str, Any]) -> TransitNetwork:
    """Rebuild a network produced by :func:`network_to_dict`.

    Raises:
        ValueError: If an edge or route entry is malformed.
    """
    try:
        edges = [
            Edge(_point_from_dict(e["source"]), _point_from_dict(e["target"]))
            for e in data.get("edges", [])
        ]
        routes = [
            Route(
                route_id=int(r["id"]),
                edge_ids=tuple(int(i) for i in r.get("edges", [])),
                required_trips=r.get("required_trips"),
                stalled=bool(r.get("stalled", False)),
            )
            for r in data.get("routes", [])
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed network data: {e}") from e

    for route in routes:
        bad = [i for i in route.edge_ids if not 0 <= i < len(edges)]
        if bad:
            raise ValueError(f"Route {route.route_id} references unknown edges: {bad}")

    return TransitNetwork(
        edges=edges, routes=routes, metadata=dict(data.get("metadata", {}))
    )


def save_to_json(
    network: TransitNetwork, path: Path, formatting_config: FormattingConfig
) -> None:
    """Save a network to JSON.

    Args:
        network: Network to save.
        path: Output path for JSON file.
        formatting_config: Formatting configuration for JSON output.
    """
    logger.info(f"Saving network to JSON: {path}")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        json.dump(network_to_dict(network), f, indent=formatting_config.json_indent)

    file_size_kb = path.stat().st_size / 1024
    logger.info(f"Saved network: {file_size_kb:.1f} KB")


def load_from_json(path: Path) -> TransitNetwork:
    """Load a network saved with :func:`save_to_json`.

    Args:
        path: Input path for JSON file.

    Returns:
        Reconstructed network.
    """
    logger.info(f"Loading network from JSON: {path}")
    with Path(path).open("r") as f:
        data = json.load(f)
    network = network_from_dict(data)
    logger.info(
        f"Loaded network: {len(network.routes):,} routes, {len(network.edges):,} edges"
    )
    return network
