import os
from pathlib import Path
from typing import Optional

# looked up in order when no --config is given
CONFIG_SEARCH = (
    Path("portwatch.yaml"),
    Path("portwatch.yml"),
    Path("~/.config/portwatch/config.yaml"),
    Path("/etc/portwatch/config.yaml"),
)


def find_config_file(explicit: Optional[str | os.PathLike] = None) -> Optional[Path]:
    """Path of the settings file to load, or None when there is none.

    An explicit path is always returned (relative ones against the working
    directory) so a typo is reported by the loader instead of silently
    falling back to a default location.
    """
    if explicit:
        return Path(explicit).expanduser().absolute()
    for candidate in CONFIG_SEARCH:
        p = candidate.expanduser()
        if p.is_file():
            return p.absolute()
    return None
