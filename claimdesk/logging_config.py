from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for the `claimdesk` logger tree.

    Uvicorn installs the handlers; this only controls verbosity of our modules.
    Use `CLAIMDESK_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR).
    """

    normalized = level.upper()
    logging.getLogger("claimdesk").setLevel(normalized)
    logging.getLogger("claimdesk").propagate = True
