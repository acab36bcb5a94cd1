import logging
from logging.handlers import RotatingFileHandler

from .config import settings


def configure_logging() -> None:
    logger = logging.getLogger()
    logger.setLevel(settings.log_level.upper())
    if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        # lifespan re-entered (tests, reload)
        return

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (batches produce a line per dispatch)
    fh = RotatingFileHandler(
        settings.log_file, maxBytes=2_000_000, backupCount=5
    )
    fh.setFormatter(fmt)
    logger.addHandler(fh)

    # Frame-level chatter from the websocket client
    logging.getLogger("websockets").setLevel(logging.WARNING)
