"""Configuration management for transit network generation."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from transitgen.log_config import get_logger

logger = get_logger(__name__)


@dataclass
class DensityColumns:
    """Column names of the density grid CSV."""

    x: str = "x"
    y: str = "y"
    value: str = "density"


@dataclass
class DataSources:
    """Input data configuration.

    Points at the population density grid CSV and names the columns holding
    integer cell coordinates and raw density.
    """

    density_grid: Path = Path("data/density_grid.csv")
    columns: DensityColumns = field(default_factory=DensityColumns)

    def __post_init__(self) -> None:
        """Convert string paths to Path objects."""
        self.density_grid = Path(self.density_grid)


@dataclass
class GenerationConfig:
    """Parameters of the stochastic route synthesis."""

    seed: int = 1  # Counter the sampler starts from
    min_station_size: float = 0.01  # Minimum scaled density for a station to form
    routes: int = 100  # Number of routes to generate
    edges_per_route_average: float = 10.0
    edges_per_route_variation: float = 2.0  # Uniform spread around the average
    # Higher values favor larger stations when picking a route's start
    start_stop_choice_power: float = 4.0
    # Higher values favor best-matching candidates when picking the next stop
    target_stop_in_radius_choice_power: float = 3.0
    # Maximum edge length as a fraction of the region extent
    max_edge_distance_factor: float = 0.5
    # Maximum relative size difference between the two ends of an edge
    max_size_difference_factor: float = 0.5


@dataclass
class PostProcessingConfig:
    """Optional stages run after all routes are synthesized."""

    repair_connectivity: bool = False


@dataclass
class FormattingConfig:
    """Output formatting settings."""

    json_indent: int = 2  # JSON output indentation


@dataclass
class OutputConfig:
    """Output artefacts configuration."""

    formatting: FormattingConfig = field(default_factory=FormattingConfig)
    export_map: bool = False  # Render the network to a PNG next to the JSON
    map_dpi: int = 150


_NON_NEGATIVE_GENERATION_FIELDS = (
    "min_station_size",
    "routes",
    "edges_per_route_average",
    "edges_per_route_variation",
    "start_stop_choice_power",
    "target_stop_in_radius_choice_power",
    "max_edge_distance_factor",
    "max_size_difference_factor",
)


def _section(config_dict: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a configuration section as a dictionary (empty when absent)."""
    section = config_dict.get(name, {}) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' configuration section must be a dictionary")
    return section


def _check_keys(section: dict[str, Any], cls: type, name: str) -> None:
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ValueError(f"Unknown keys in '{name}': {unknown}")


def _as_bool(value: Any, name: str) -> bool:
    """Return ``value`` if it is a YAML boolean; quoted strings are rejected."""
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


@dataclass
class TransitConfig:
    """Complete transit generator configuration.

    Aggregates input, generation, post-processing and output settings.
    """

    data_sources: DataSources = field(default_factory=DataSources)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    post_processing: PostProcessingConfig = field(
        default_factory=PostProcessingConfig
    )
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_yaml(cls, config_path: Path) -> TransitConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated configuration. Relative data paths are resolved against
            the configuration file's directory.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ValueError: If the YAML is malformed or contains invalid values.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open("r") as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration root must be a dictionary")

        cfg = cls._from_dict(config_dict)
        grid_path = cfg.data_sources.density_grid
        if not grid_path.is_absolute():
            cfg.data_sources.density_grid = config_path.parent / grid_path
        cfg._source_path = config_path  # type: ignore[attr-defined]
        logger.debug(f"Parsed configuration from {config_path}")
        return cfg

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> TransitConfig:
        """Build configuration from a plain dictionary."""
        allowed_sections = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - allowed_sections)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {unknown}")

        ds_dict = _section(config_dict, "data_sources")
        _check_keys(ds_dict, DataSources, "data_sources")
        columns_dict = ds_dict.get("columns", {}) or {}
        if not isinstance(columns_dict, dict):
            raise ValueError("'data_sources.columns' must be a dictionary")
        _check_keys(columns_dict, DensityColumns, "data_sources.columns")
        data_sources = DataSources(
            density_grid=ds_dict.get("density_grid", DataSources().density_grid),
            columns=DensityColumns(**{k: str(v) for k, v in columns_dict.items()}),
        )

        gen_dict = _section(config_dict, "generation")
        _check_keys(gen_dict, GenerationConfig, "generation")
        defaults = GenerationConfig()
        try:
            generation = GenerationConfig(
                seed=int(gen_dict.get("seed", defaults.seed)),
                min_station_size=float(
                    gen_dict.get("min_station_size", defaults.min_station_size)
                ),
                routes=int(gen_dict.get("routes", defaults.routes)),
                edges_per_route_average=float(
                    gen_dict.get(
                        "edges_per_route_average", defaults.edges_per_route_average
                    )
                ),
                edges_per_route_variation=float(
                    gen_dict.get(
                        "edges_per_route_variation",
                        defaults.edges_per_route_variation,
                    )
                ),
                start_stop_choice_power=float(
                    gen_dict.get(
                        "start_stop_choice_power", defaults.start_stop_choice_power
                    )
                ),
                target_stop_in_radius_choice_power=float(
                    gen_dict.get(
                        "target_stop_in_radius_choice_power",
                        defaults.target_stop_in_radius_choice_power,
                    )
                ),
                max_edge_distance_factor=float(
                    gen_dict.get(
                        "max_edge_distance_factor", defaults.max_edge_distance_factor
                    )
                ),
                max_size_difference_factor=float(
                    gen_dict.get(
                        "max_size_difference_factor",
                        defaults.max_size_difference_factor,
                    )
                ),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value in 'generation': {exc}") from exc

        pp_dict = _section(config_dict, "post_processing")
        _check_keys(pp_dict, PostProcessingConfig, "post_processing")
        post_processing = PostProcessingConfig(
            repair_connectivity=_as_bool(
                pp_dict.get("repair_connectivity", False),
                "post_processing.repair_connectivity",
            )
        )

        out_dict = _section(config_dict, "output")
        _check_keys(out_dict, OutputConfig, "output")
        fmt_dict = out_dict.get("formatting", {}) or {}
        if not isinstance(fmt_dict, dict):
            raise ValueError("'output.formatting' must be a dictionary")
        _check_keys(fmt_dict, FormattingConfig, "output.formatting")
        try:
            output = OutputConfig(
                formatting=FormattingConfig(
                    json_indent=int(fmt_dict.get("json_indent", 2))
                ),
                export_map=_as_bool(
                    out_dict.get("export_map", False), "output.export_map"
                ),
                map_dpi=int(out_dict.get("map_dpi", 150)),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value in 'output': {exc}") from exc

        cfg = cls(
            data_sources=data_sources,
            generation=generation,
            post_processing=post_processing,
            output=output,
        )
        cfg.validate_parameters()
        return cfg

    def validate_parameters(self) -> None:
        """Validate numeric parameters without touching the filesystem.

        Raises:
            ValueError: If a parameter is out of range.
        """
        for name in _NON_NEGATIVE_GENERATION_FIELDS:
            if getattr(self.generation, name) < 0:
                raise ValueError(f"generation.{name} must be non-negative")
        if self.output.map_dpi <= 0:
            raise ValueError("output.map_dpi must be a positive integer")
        if self.output.formatting.json_indent < 0:
            raise ValueError("output.formatting.json_indent must be non-negative")

    def validate(self) -> None:
        """Validate configuration parameters and input availability.

        Raises:
            ValueError: If configuration is invalid.
        """
        logger.info("Validating configuration")
        self.validate_parameters()

        if not self.data_sources.density_grid.exists():
            raise ValueError(
                f"Density grid file not found: {self.data_sources.density_grid}"
            )

        logger.info("Configuration validation passed")

    def summary(self) -> str:
        """Generate configuration summary string.

        Returns:
            Human-readable configuration summary.
        """
        gen = self.generation
        lines = [
            "TRANSIT GENERATOR CONFIGURATION",
            "=" * 60,
            "",
            "DATA SOURCES",
            "-" * 30,
            f"   Density Grid: {self.data_sources.density_grid}",
            f"   Columns: x={self.data_sources.columns.x}, "
            f"y={self.data_sources.columns.y}, "
            f"value={self.data_sources.columns.value}",
            "",
            "ROUTE SYNTHESIS",
            "-" * 30,
            f"   Seed: {gen.seed}",
            f"   Routes: {gen.routes}",
            f"   Min Station Size: {gen.min_station_size}",
            f"   Edges per Route: {gen.edges_per_route_average} "
            f"± {gen.edges_per_route_variation}",
            f"   Start Stop Choice Power: {gen.start_stop_choice_power}",
            f"   Target Stop Choice Power: {gen.target_stop_in_radius_choice_power}",
            f"   Max Edge Distance Factor: {gen.max_edge_distance_factor}",
            f"   Max Size Difference Factor: {gen.max_size_difference_factor}",
            "",
            "POST-PROCESSING",
            "-" * 30,
            f"   Repair Connectivity: {self.post_processing.repair_connectivity}",
            "",
            "=" * 60,
        ]

        return "\n".join(lines)
