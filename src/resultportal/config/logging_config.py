import logging
import sys

from resultportal.config.settings import settings

HANDLER_NAME = "resultportal"


def setup_logging(level: str = settings.log_level) -> logging.Logger:
    """
    Configure the root logger with a single stdout handler.

    Safe to call more than once; a second call only updates the level.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    if not any(h.get_name() == HANDLER_NAME for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        console_handler.set_name(HANDLER_NAME)
        logger.addHandler(console_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger
