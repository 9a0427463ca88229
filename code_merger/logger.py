"""
Configure the logger
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> None:
    global _configured
    if _configured:
        return

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # uvicorn logs every request already
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _configured = True
