"""Transit Network Generator.

Synthesizes draft transit networks (stations and routes) from population
density grids with a seeded, density-biased random walk.
"""

__version__ = "0.1.0"

from .config import TransitConfig
from .density_grid import DensityGrid, Point, build_density_grid, load_density_samples
from .export import load_from_json, save_to_json
from .network import NetworkBuilder, RandomWalkStrategy, generate_network
from .routes import Edge, Route, TransitNetwork
from .sampler import EmptyInputError, SeededSampler
from .station_pool import EmptyPoolError, StationPool

__all__ = [
    "DensityGrid",
    "Edge",
    "EmptyInputError",
    "EmptyPoolError",
    "NetworkBuilder",
    "Point",
    "RandomWalkStrategy",
    "Route",
    "SeededSampler",
    "StationPool",
    "TransitConfig",
    "TransitNetwork",
    "build_density_grid",
    "generate_network",
    "load_density_samples",
    "load_from_json",
    "save_to_json",
]
