import logging

logger = logging.getLogger("esmapper")


def debug(message: str, *args) -> None:
    logger.debug(message, *args)


def info(message: str, *args) -> None:
    logger.info(message, *args)


def warn(message: str, *args) -> None:
    logger.warning(message, *args)
