"""Root logger setup shared by the API process and the wipe_user script."""

import logging
import sys

from tripzi.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Per-request INFO lines from these would bury the wipe summaries.
_QUIET_LOGGERS = ("httpx", "httpcore", "botocore", "urllib3")


def setup_logging() -> None:
    """Send records to stdout at INFO, or DEBUG when DEBUG=true."""
    level = logging.DEBUG if get_settings().debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
