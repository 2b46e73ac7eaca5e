from importlib import metadata
from pathlib import Path

import tomli as tomllib

DISTRIBUTION_NAME = "pizzeria"


def get_version() -> str:
    """
    Get the Pizzeria version.

    Reads pyproject.toml when running from a source checkout and falls
    back to the installed distribution's metadata.

    Returns:
        Version string, or "unknown" if neither is available
    """
    project_root = Path(__file__).parent.parent
    pyproject_path = project_root / "pyproject.toml"

    if pyproject_path.exists():
        with open(pyproject_path, "rb") as f:
            pyproject = tomllib.load(f)
        version = pyproject.get("project", {}).get("version")
        if version:
            return version

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "unknown"
