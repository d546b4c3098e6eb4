"""Test package structure and imports."""

from pathlib import Path


def test_package_import():
    """Test that the transitgen package can be imported."""
    import transitgen

    assert hasattr(transitgen, "__version__")
    assert transitgen.__version__ == "0.1.0"


def test_public_api():
    """Test that the documented entry points are exported."""
    import transitgen

    for name in transitgen.__all__:
        assert hasattr(transitgen, name), name


def test_cli_module_import():
    """Test that transitgen.cli can be imported."""
    import transitgen.cli

    assert hasattr(transitgen.cli, "main")
    assert callable(transitgen.cli.main)


def test_log_config_module_import():
    """Test that transitgen.log_config can be imported."""
    import transitgen.log_config

    assert callable(transitgen.log_config.get_logger)
    assert callable(transitgen.log_config.set_global_log_level)


def test_main_module_calls_cli():
    """Test that __main__ module calls cli.main()."""
    import transitgen.__main__

    content = Path(transitgen.__main__.__file__).read_text()

    assert "from transitgen.cli import main" in content
    assert "main()" in content
