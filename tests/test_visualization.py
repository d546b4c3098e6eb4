"""Tests for network map rendering."""

from pathlib import Path

import pytest

from transitgen.network import generate_network
from transitgen.routes import TransitNetwork
from transitgen.visualization import export_network_map


def test_export_network_map_requires_edges(tmp_path: Path) -> None:
    out = tmp_path / "network.png"
    with pytest.raises(ValueError, match="no edges"):
        export_network_map(TransitNetwork(), out)
    assert not out.exists()


def test_export_network_map_writes_png(tmp_path: Path, city_grid, generation_config):
    network = generate_network(city_grid, generation_config)
    out = tmp_path / "maps" / "network.png"

    export_network_map(network, out, grid=city_grid, dpi=50)

    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_export_network_map_without_grid(tmp_path: Path, city_grid, generation_config):
    network = generate_network(city_grid, generation_config)
    out = tmp_path / "network.png"
    export_network_map(network, out, dpi=50)
    assert out.stat().st_size > 0
