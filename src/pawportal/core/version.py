"""Version module for reading application version from VERSION file or environment."""

import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def get_version() -> str:
    """Get the application version.

    Checks /app/VERSION first, then the APP_VERSION environment variable, then
    the installed package metadata.

    Returns:
        str: The version string, or 'unknown' if not found.
    """
    version_file = Path("/app/VERSION")
    if version_file.exists():
        try:
            value = version_file.read_text().strip()
            if value:
                return value
        except OSError:
            pass

    env_version = os.environ.get("APP_VERSION")
    if env_version:
        return env_version

    try:
        return version("pawportal-admin")
    except PackageNotFoundError:
        return "unknown"
