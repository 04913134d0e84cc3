"""CLI entry point.

Usage:
    python -m aitwy <command> [OPTIONS]
"""

from aitwy.cli import cli


def main() -> None:
    """Entry point for ``python -m aitwy`` and the ``aitwy`` script."""
    cli()


if __name__ == "__main__":
    main()
