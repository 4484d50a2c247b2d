"""Path helpers for locating Atrium config files and autostart units."""

from pathlib import Path

from platformdirs import user_config_dir

ATRIUM_APP_NAME = "atrium"
CONFIG_FILENAME = "config.json"
SYSTEMD_UNIT_DIR = Path("/etc/systemd/system")
LAUNCH_AGENTS_DIRNAME = "Library/LaunchAgents"


def atrium_config_dir() -> Path:
    """Return the base Atrium config directory.

    Example:
        >>> isinstance(atrium_config_dir(), Path)
        True
    """
    return Path(user_config_dir(ATRIUM_APP_NAME))


def config_path() -> Path:
    """Return the path to the user config file.

    Example:
        >>> config_path().name == CONFIG_FILENAME
        True
    """
    return atrium_config_dir() / CONFIG_FILENAME


def launch_agents_dir(home: Path | None = None) -> Path:
    """Return the per-user launchd agents directory."""
    return (home or Path.home()) / LAUNCH_AGENTS_DIRNAME


def ensure_dir(path: Path) -> None:
    """Create a directory (and parents) if needed."""
    path.mkdir(parents=True, exist_ok=True)
