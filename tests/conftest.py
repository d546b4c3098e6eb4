"""Pytest configuration and shared fixtures for transitgen tests."""

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from transitgen.config import GenerationConfig  # noqa: E402
from transitgen.density_grid import DensityGrid  # noqa: E402


@pytest.fixture
def sample_config():
    """Sample configuration dictionary for testing."""
    return {
        "data_sources": {
            "density_grid": "grid.csv",
            "columns": {"x": "x", "y": "y", "value": "density"},
        },
        "generation": {
            "seed": 7,
            "min_station_size": 0.5,
            "routes": 5,
            "edges_per_route_average": 4,
            "edges_per_route_variation": 1,
            "start_stop_choice_power": 4,
            "target_stop_in_radius_choice_power": 3,
            "max_edge_distance_factor": 0.5,
            "max_size_difference_factor": 0.5,
        },
        "post_processing": {"repair_connectivity": False},
        "output": {"formatting": {"json_indent": 2}, "export_map": False},
    }


@pytest.fixture
def temp_config_file(tmp_path, sample_config):
    """Create a temporary configuration file for testing."""
    import yaml

    config_file = tmp_path / "test_config.yml"
    with open(config_file, "w") as f:
        yaml.dump(sample_config, f, default_flow_style=False, indent=2)
    return config_file


@pytest.fixture
def invalid_config_file(tmp_path):
    """Create an invalid YAML configuration file for testing."""
    config_file = tmp_path / "invalid_config.yml"
    config_file.write_text("invalid: yaml: content: [unclosed")
    return config_file


def _density(x: int, y: int) -> float:
    # Two dense centers with a sparse band between them
    return max(0.0, 6.0 - 0.5 * (abs(x - 5) + abs(y - 5))) + max(
        0.0, 5.0 - 0.5 * (abs(x - 15) + abs(y - 12))
    )


@pytest.fixture
def density_csv(tmp_path):
    """Write a 20x20 density grid CSV and return its path."""
    lines = ["x,y,name,area,density"]
    for x in range(20):
        for y in range(20):
            lines.append(f"{x},{y},cell_{x}_{y},1.0,{_density(x, y) * 10:.3f}")
    path = tmp_path / "grid.csv"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def city_grid():
    """In-memory 20x20 grid with already-scaled values."""
    grid = DensityGrid()
    for x in range(20):
        for y in range(20):
            grid.put(x, y, _density(x, y))
    return grid


@pytest.fixture
def generation_config():
    """Generation parameters sized for the 20x20 test grid."""
    return GenerationConfig(
        seed=3,
        min_station_size=1.0,
        routes=8,
        edges_per_route_average=5,
        edges_per_route_variation=2,
    )
