# putik/logger.py
import logging
from logging.handlers import RotatingFileHandler
import os

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.getenv("LOG_FILE", "putik.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def _file_handler(formatter: logging.Formatter) -> RotatingFileHandler:
    os.makedirs(LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(LOG_DIR, LOG_FILE),
        maxBytes=10 * 1024 * 1024,  # 10 MB x 5 files
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Module logger writing to the console and to a rotating file.
    Handlers are attached on first use only.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)
    logger.propagate = False

    formatter = logging.Formatter(FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.addHandler(_file_handler(formatter))
    return logger
