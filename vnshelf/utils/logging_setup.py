"""Root logger configuration for the vnshelf command line."""

import logging
import sys
from typing import Optional

from .paths import ensure_parent_dir, get_log_path

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(debug: bool = False, data_dir: Optional[str] = None,
                  log_to_file: bool = True) -> Optional[str]:
    """Log to stderr and, unless disabled, to a dated file in the data directory.

    Debug mode lowers the level to DEBUG. Returns the log file path, or None
    when file logging is off or the file could not be opened.
    """
    handlers = [logging.StreamHandler(sys.stderr)]
    log_file = None

    if log_to_file:
        log_file = get_log_path(data_dir)
        try:
            ensure_parent_dir(log_file)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as e:
            print(f"Could not open log file {log_file}: {e}", file=sys.stderr)
            log_file = None

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    # aiohttp access/client chatter is noise below WARNING
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    return log_file
