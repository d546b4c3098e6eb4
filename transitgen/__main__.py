"""Entry point for ``python -m transitgen``."""

from transitgen.cli import main

if __name__ == "__main__":
    main()
