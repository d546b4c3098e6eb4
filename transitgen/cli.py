"""Command line interface for transit network generation."""

from __future__ import annotations

import argparse
import sys
import time
from contextlib import contextmanager
from pathlib import Path

from transitgen.config import TransitConfig
from transitgen.log_config import get_logger

logger = get_logger(__name__)


@contextmanager
def Timer(description: str):
    """Context manager for timing operations with both print and log output.

    Args:
        description: Operation description for timing messages.

    Yields:
        None: Context manager yields nothing.
    """
    print(f"🔄 {description}...")
    logger.info(f"Starting {description}")
    start = time.time()
    try:
        yield
        elapsed = time.time() - start
        print(f"✅ {description} (completed in {elapsed:.1f}s)")
        logger.info(f"Completed {description} in {elapsed:.1f}s")
    except Exception as e:
        elapsed = time.time() - start
        print(f"❌ {description} (failed after {elapsed:.1f}s)")
        logger.error(f"Failed {description} after {elapsed:.1f}s: {e}")
        raise


def _load_config(config_path: Path) -> TransitConfig:
    """Load and validate configuration.

    Args:
        config_path: Path to YAML configuration file.

    Returns:
        Loaded configuration object.

    Raises:
        SystemExit: If configuration loading or validation fails.
    """
    try:
        config = TransitConfig.from_yaml(config_path)
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except FileNotFoundError:
        print(f"❌ Configuration file not found: {config_path}")
        print(f"💡 Create one with: cp config.yml {config_path}")
        logger.error(f"Configuration file not found: {config_path}")
        sys.exit(2)  # Config problem
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"❌ Configuration error: {e}")
        print(f"💡 Check YAML syntax in: {config_path}")
        sys.exit(2)  # Config problem


def _run_generation(config: TransitConfig, output_dir: Path) -> Path:
    """Execute the ingestion → synthesis → export pipeline.

    Args:
        config: Transit configuration object.
        output_dir: Directory receiving the network JSON (and PNG map).

    Returns:
        Path of the written network JSON.
    """
    from transitgen.density_grid import build_density_grid, load_density_samples
    from transitgen.export import save_to_json
    from transitgen.network import generate_network
    from transitgen.postprocess import ConnectivityRepair

    source_path = getattr(config, "_source_path", None)
    prefix = Path(source_path).stem if isinstance(source_path, Path) else "transit"
    network_path = output_dir / f"{prefix}_network.json"

    print("Transit Network Generation Pipeline")
    print("=" * 50)
    print(f"   Density grid: {config.data_sources.density_grid}")
    print(f"   Routes: {config.generation.routes}")
    print(f"   Seed: {config.generation.seed}")

    with Timer("Load density grid"):
        samples = load_density_samples(
            config.data_sources.density_grid, config.data_sources.columns
        )
        grid = build_density_grid(samples)

    post_processors = []
    if config.post_processing.repair_connectivity:
        post_processors.append(ConnectivityRepair())

    with Timer("Synthesize routes"):
        network = generate_network(grid, config.generation, post_processors)

    with Timer("Save network"):
        save_to_json(network, network_path, config.output.formatting)

    if config.output.export_map:
        from transitgen.visualization import export_network_map

        map_path = output_dir / f"{prefix}_network.png"
        if network.edges:
            with Timer("Render network map"):
                export_network_map(
                    network, map_path, grid=grid, dpi=config.output.map_dpi
                )
        else:
            print("⚠️  Network has no edges - skipping map export")
            logger.warning("Network has no edges; map export skipped")

    stations = network.stations()
    print("\n🎉 Generation complete!")
    print(f"📁 Network: {network_path}")
    print(
        f"📊 Network summary: {len(network.routes):,} routes, "
        f"{len(network.edges):,} edges, {len(stations):,} stations"
    )
    return network_path


def generate_command(args: argparse.Namespace) -> None:
    """Generate a transit network from a density grid.

    Args:
        args: Parsed command line arguments containing config and output paths.
    """
    from transitgen.sampler import EmptyInputError

    config_path = Path(args.config)
    config_obj = _load_config(config_path)
    output_dir = Path(args.output) if getattr(args, "output", None) else Path.cwd()

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with Timer("Transit generation pipeline"):
            _run_generation(config_obj, output_dir)
    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        print(f"❌ File not found: {e}")
        print("💡 Check data file paths in configuration")
        sys.exit(3)
    except EmptyInputError as e:
        logger.error(f"No stations available: {e}")
        print(f"❌ {e}")
        print("💡 Lower generation.min_station_size or check the density column")
        sys.exit(3)
    except ValueError as e:
        logger.error(f"Validation error: {e}")
        print(f"❌ Validation error: {e}")
        print("💡 Check input data quality and configuration parameters")
        sys.exit(3)
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        print("💡 Use -v for detailed error information")
        sys.exit(1)


def info_command(args: argparse.Namespace) -> None:
    """Show configuration and data source information.

    Args:
        args: Parsed command line arguments containing config file path.
    """
    config_path = Path(args.config)
    config_obj = _load_config(config_path)

    print(config_obj.summary())

    print("\nData Availability")
    print("=" * 20)
    grid_path = Path(config_obj.data_sources.density_grid)
    grid_status = "✅" if grid_path.exists() else "❌"
    print(f"Density grid: {grid_status} {grid_path}")

    if not grid_path.exists():
        print("\n⚠️  Missing density grid - provide it before generation")


def main() -> None:
    """Parse command line arguments and execute the appropriate subcommand.

    Configures logging, parses CLI arguments, and dispatches to the correct
    command function (generate or info).
    """
    parser = argparse.ArgumentParser(
        prog="transitgen",
        description="Generate draft transit networks from population density grids.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console output (logs only)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    generate_parser = subparsers.add_parser(
        "generate", help="Generate a transit network from a density grid"
    )
    generate_parser.add_argument(
        "config",
        nargs="?",
        default="config.yml",
        help="Configuration file path (default: config.yml)",
    )
    generate_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output directory for network JSON and map PNG. Defaults to CWD.",
    )
    generate_parser.set_defaults(func=generate_command)

    info_parser = subparsers.add_parser(
        "info", help="Show configuration and data source information"
    )
    info_parser.add_argument(
        "config",
        nargs="?",
        default="config.yml",
        help="Configuration file path (default: config.yml)",
    )
    info_parser.set_defaults(func=info_command)

    args = parser.parse_args()

    import logging

    from transitgen import log_config

    log_level = logging.DEBUG if args.verbose else logging.INFO
    log_config.set_global_log_level(log_level)

    # Suppress print output if --quiet is set
    if args.quiet:
        import builtins

        builtins.print = lambda *args, **kwargs: None

    if not hasattr(args, "func") or args.func is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
