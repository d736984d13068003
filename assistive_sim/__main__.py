from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

LOG_LEVEL_ENV = "ASSISTIVE_LOG_LEVEL"


def _ensure_repo_root_on_path() -> None:
    """Ensure the repository root (parent of this package) is on ``sys.path``.

    Lets ``python assistive_sim/__main__.py`` work as well as
    ``python -m assistive_sim``.
    """
    repo_root_str = str(Path(__file__).resolve().parent.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


def configure_logging() -> None:
    """Send log records to stderr; level comes from ASSISTIVE_LOG_LEVEL (default INFO)."""

    level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger("assistive_sim")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(handler)
    root.setLevel(level)


try:
    # Works when executed as a module: python -m assistive_sim
    from .app import run
except ImportError:
    # Works when executed as a script.
    _ensure_repo_root_on_path()
    from assistive_sim.app import run


def main() -> int:
    """Entry point for running the simulations from the command line."""
    configure_logging()
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
