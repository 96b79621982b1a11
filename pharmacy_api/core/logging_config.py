"""Logging setup shared by the API process and the seed script."""
import logging
import sys

from pharmacy_api.core.config import settings

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | int | None = None) -> None:
    """Attach a single stderr handler to the root logger. Idempotent."""
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level or settings.LOG_LEVEL)

    # SQL echo is noisy; only enable it explicitly
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True
