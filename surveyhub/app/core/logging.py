"""Setting up a file logger for recording service events.

Returns a lazily initialized module logger that writes to a file
`{logging_dir}/{filename}`, one line per event.
"""
import os
from logging import FileHandler, Formatter, getLogger, INFO
from surveyhub.app.core.config import settings

def get_logs_writer_logger(logging_dir=settings.LOG_PATH, filename='logs.log'):
    os.makedirs(logging_dir, exist_ok=True)
    log_path = os.path.join(logging_dir, filename)

    logger = getLogger(__name__)

    if logger.handlers:
        return logger

    logger.setLevel(INFO)
    logger.propagate = False

    handler = FileHandler(log_path, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)

    return logger
