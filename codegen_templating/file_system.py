"""File system helpers."""

from pathlib import Path

from .logging_config import get_logger

logger = get_logger(__name__)


def ensure_directory(directory: str | Path) -> None:
    """Create ``directory`` and any missing ancestors, like ``mkdir -p``."""
    directory = Path(directory)
    if directory.exists():
        return
    _make_directory_recursive(directory)


def _make_directory_recursive(directory: Path) -> None:
    parent = directory.parent
    if parent != directory and not parent.exists():
        _make_directory_recursive(parent)

    logger.debug("Creating directory %s", directory)
    directory.mkdir(mode=0o777, exist_ok=True)
