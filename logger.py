import logging

ROOT_LOGGER = "dynamic_matrix"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name=None, level=None):
    """
    Loggers live under the `dynamic_matrix` namespace. The namespace root gets
    one console handler the first time anything asks for a logger.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(ch)
        root.setLevel(logging.WARNING)

    if name is None or name == ROOT_LOGGER:
        logger = root
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER}.{name}")

    if level is not None:
        logger.setLevel(level)
    return logger


__all__ = ["get_logger", "ROOT_LOGGER"]
