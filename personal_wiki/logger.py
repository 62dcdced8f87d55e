#!/usr/bin/env python3

import logging, os
from logging.handlers import TimedRotatingFileHandler

from personal_wiki.config import LOG_DIR, LOG_FILE, LOG_LEVEL, LOG_BACKUP_COUNT

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(module)s - %(message)s"


def _attach(logger: logging.Logger, handlers: list, level):
    for handler in logger.handlers:
        handler.close()
    logger.handlers = list(handlers)
    logger.setLevel(level)
    logger.propagate = False


def setup_logger(app):
    """
    Routes the Flask app logger and the waitress logger to a daily rotating file
    and the console. Reads LOG_DIR, LOG_FILE, LOG_LEVEL and LOG_BACKUP_COUNT from app.config.
    """
    logs_dir = app.config.get("LOG_DIR", LOG_DIR)
    os.makedirs(logs_dir, exist_ok=True)
    log_path = os.path.join(logs_dir, app.config.get("LOG_FILE", LOG_FILE))
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", LOG_LEVEL)).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {app.config.get('LOG_LEVEL')}")

    formatter = logging.Formatter(LOG_FORMAT)
    file_handler = TimedRotatingFileHandler(
        log_path,
        when="midnight",
        backupCount=int(app.config.get("LOG_BACKUP_COUNT", LOG_BACKUP_COUNT)),
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()
    handlers = [file_handler, console_handler]
    for handler in handlers:
        handler.setFormatter(formatter)

    _attach(app.logger, handlers, level)
    # waitress is chatty at debug level
    _attach(logging.getLogger("waitress"), handlers, max(level, logging.INFO))

    app.logger.info(f"Personal wiki logging to {log_path} at {logging.getLevelName(level)}")
    return app
