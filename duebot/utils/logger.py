import os
import sys

from loguru import logger

from duebot.utils.config import Settings, S


def setup(settings: Settings = S) -> None:
    os.makedirs(settings.log_dir, exist_ok=True)
    log_file = os.path.join(settings.log_dir, "duebot.log")

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(log_file, level=settings.log_level, rotation="2 MB", retention=7,
               enqueue=True, backtrace=False, diagnose=False)
