"""Version helpers."""

from functools import lru_cache
from pathlib import Path

import tomlkit

__all__ = ["get_docker_status", "get_pyproject_version"]

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


@lru_cache(maxsize=1)
def get_pyproject_version(pyproject_path: Path | None = None) -> str:
    """Get SourceBridge's version from the pyproject.toml file.

    Args:
        pyproject_path (Path | None): Explicit pyproject.toml location; defaults to
            the one at the project root.

    Returns:
        str: SourceBridge's version, or "unknown" when it cannot be read
    """
    toml_file = pyproject_path or PROJECT_ROOT / "pyproject.toml"
    if not toml_file.is_file():
        return "unknown"

    with toml_file.open("r", encoding="utf-8") as f:
        toml_data = tomlkit.load(f)

    project = toml_data.get("project", {})
    version = project.get("version") if hasattr(project, "get") else None
    return str(version) if version else "unknown"


def get_docker_status() -> bool:
    """Check if SourceBridge is running inside a Docker container.

    Returns:
        bool: True if running inside a Docker container, False otherwise
    """
    return Path("/.dockerenv").is_file()
