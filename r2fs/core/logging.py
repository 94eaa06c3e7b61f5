"""Named loggers for r2fs."""

import logging


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for an r2fs component.

    Records always reach the root logger, so an application's own
    logging configuration applies unchanged. Until the root logger has a
    handler, the component logger stays at WARNING so an unconfigured
    process is not flooded with transfer chatter.

    Args:
        name: Dotted component name, e.g. 'r2fs.client'
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    if not logging.getLogger().handlers:
        logger.setLevel(logging.WARNING)

    return logger
