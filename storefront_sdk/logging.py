import logging


def get_logger(name: str):
    """
    Logger for SDK modules.

    Attaches a stream handler only when the application has not configured
    logging itself, so the SDK can be used standalone from scripts.
    """
    logger = logging.getLogger(name)
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger
