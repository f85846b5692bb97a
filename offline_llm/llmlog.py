import logging

LOG_NAME = "offline-llm"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def get_logger(name: str = LOG_NAME, level: int = logging.INFO) -> logging.Logger:
    """Named logger with one stream handler, kept off the root logger."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.propagate = False
    return logger


LOG = get_logger()
