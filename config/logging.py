#config/logging

import logging
from logging.handlers import RotatingFileHandler

from config.settings import LOG_FILE, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"


def setup_logging() -> logging.Logger:
    """Configure the root logger: console always, rotating file when LOG_FILE is set."""
    formatter = logging.Formatter(LOG_FORMAT)

    logger = logging.getLogger()
    logger.setLevel(LOG_LEVEL.upper())

    # Drop handlers installed by a previous call (uvicorn reload, tests)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if LOG_FILE:
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=1 * 1024 * 1024,  # 1 MB
            backupCount=3,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
