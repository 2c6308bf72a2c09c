import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler

import seqlog

from core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")


def setup_logging_to_console(level=logging.INFO):
    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, "_primos_console", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._primos_console = True
    root.addHandler(handler)

    if settings.SEQ_SERVER_URL:
        setup_logging_to_seq(level)


def setup_logging_to_seq(level=logging.INFO):
    seqlog.log_to_seq(
        server_url=settings.SEQ_SERVER_URL,
        api_key=settings.SEQ_SERVER_API_KEY,
        level=level,
        batch_size=10,
        auto_flush_timeout=2,
        override_root_logger=False,
    )
    seqlog.set_global_log_properties(
        Application=settings.PROJECT_NAME,
        Environment=settings.ENVIRONMENT_NAME,
    )


def setup_logging_to_file(
    app: str, level=logging.INFO, logger: logging.Logger | None = None
):
    os.makedirs(LOG_DIR, exist_ok=True)
    handler = TimedRotatingFileHandler(
        os.path.join(LOG_DIR, f"{app}.log"), when="midnight", backupCount=7
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)

    target = logger or logging.getLogger()
    target.addHandler(handler)
    target.setLevel(level)
