# =============================================================================
# Logging Configuration — Console Only
# =============================================================================
#
# Console logging is the only observability surface of the service.
# Modules log through `logging.getLogger(__name__)`; this module installs
# the single root handler when the API starts. The Celery worker installs
# its own handlers and only picks up the level from settings.
# =============================================================================

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Install a console handler on the root logger.

    `force=True` replaces handlers installed by an earlier call (uvicorn
    --reload re-imports the app in the same process).
    """
    logging.basicConfig(
        format=LOG_FORMAT,
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    # SDK clients log every HTTP request at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
