from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

DEFAULT_LOG_PATH = "/var/log/cloudroot.log"
FALLBACK_LOG_NAME = "cloudroot.log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_CONFIGURED_ATTR = "_cloudroot_configured"
_PATH_ATTR = "_cloudroot_log_path"


def _open_file_handler(log_path: str) -> Tuple[logging.FileHandler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        # The build host may not let us write under /var/log.
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
    verbose: bool = False,
) -> str:
    """Send every record to log_path (or ./cloudroot.log) and, optionally, stderr.

    The file always receives ``level`` and above. With ``verbose`` the console
    also shows DEBUG records (captured command output). Calling this again is
    a no-op apart from the level change.

    Returns the log file actually in use.
    """

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else level)

    if getattr(root, _CONFIGURED_ATTR, False):
        return getattr(root, _PATH_ATTR, log_path)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler, chosen_path = _open_file_handler(log_path)
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setLevel(logging.DEBUG if verbose else level)
        console.setFormatter(formatter)
        root.addHandler(console)

    setattr(root, _CONFIGURED_ATTR, True)
    setattr(root, _PATH_ATTR, chosen_path)

    if chosen_path != log_path:
        logging.getLogger(__name__).warning("Cannot write %s; logging to %s instead", log_path, chosen_path)
    else:
        logging.getLogger(__name__).info("Logging to %s", chosen_path)
    return chosen_path
