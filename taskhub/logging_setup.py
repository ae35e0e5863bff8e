import logging
import os
import time
from logging.handlers import RotatingFileHandler

from taskhub.config import settings


class LocalTimeFormatter(logging.Formatter):
    converter = time.localtime


def setup_logging(level: str | None = None, log_file_path: str | None = None) -> None:
    log_level = (level or settings.log_level or "INFO").upper()
    log_file_path = log_file_path or settings.log_file_path

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = LocalTimeFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file_path:
        directory = os.path.dirname(log_file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(log_file_path, maxBytes=5_000_000, backupCount=5)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").handlers.clear()
    logging.getLogger("passlib").setLevel(logging.ERROR)
