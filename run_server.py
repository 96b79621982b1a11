"""Simple server runner that keeps uvicorn alive."""
import logging
import signal
import sys

import uvicorn

from pharmacy_api.core.logging_config import configure_logging

logger = logging.getLogger("run_server")


def handle_signal(sig, frame):
    logger.info("Received signal %s, shutting down gracefully...", sig)
    sys.exit(0)


signal.signal(signal.SIGINT, handle_signal)
signal.signal(signal.SIGTERM, handle_signal)

if __name__ == "__main__":
    configure_logging()
    logger.info("Starting Pharmacy Inventory API")
    uvicorn.run(
        "pharmacy_api.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
