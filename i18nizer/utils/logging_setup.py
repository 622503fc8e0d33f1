import logging
import os
import sys

LOGGER_NAMESPACE = "i18nizer"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name):
    """Get a logger under the application namespace.

    Args:
        name (str): Short module name, e.g. "classifier"

    Returns:
        logging.Logger: The namespaced logger
    """
    if name.startswith(LOGGER_NAMESPACE):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def setup_logging(level=None, stream=None):
    """Configure the root application logger once.

    The level is taken from the argument, then I18NIZER_LOG_LEVEL, then INFO.
    """
    if level is None:
        level = os.environ.get("I18NIZER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    else:
        for handler in root.handlers:
            handler.setLevel(level)
    root.propagate = False
    return root
