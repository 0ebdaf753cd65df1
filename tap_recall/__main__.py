from __future__ import annotations

import logging
import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Ensure the repository root (parent of this package) is on ``sys.path``.

    Lets ``python tap_recall/__main__.py`` work as well as ``python -m tap_recall``.
    """
    pkg_dir = Path(__file__).resolve().parent
    repo_root_str = str(pkg_dir.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


try:
    from .app import run  # type: ignore[attr-defined]
    from .settings import log_level_from_env  # type: ignore[attr-defined]
except ImportError:
    _ensure_repo_root_on_path()
    from tap_recall.app import run  # type: ignore[attr-defined]
    from tap_recall.settings import log_level_from_env  # type: ignore[attr-defined]


def main() -> int:
    """Entry point for running the game from the command line."""
    logging.basicConfig(
        level=log_level_from_env(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
