"""Main entry point and logging setup for station navigation."""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging to stderr."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


if __name__ == "__main__":
    from station_navigation.cli import cli_main

    cli_main()
