import logging
from logging.handlers import RotatingFileHandler

from .config import settings


def configure_logging() -> None:
    logger = logging.getLogger()
    logger.setLevel(settings.log_level.upper())

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file; an empty log_file keeps console only
    if settings.log_file:
        fh = RotatingFileHandler(
            settings.log_file, maxBytes=2_000_000, backupCount=5
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # Silence noisy httpx request logging (one line per 3s poll)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
