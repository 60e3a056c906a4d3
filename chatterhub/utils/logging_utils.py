import logging
import os

# This module provides a consistent logging interface for the application

def get_logger():
    # Create and configure the logger
    logger = logging.getLogger("chatterhub")

    # Remove any existing handlers
    logger.handlers.clear()

    # Prevent propagation to the root logger to avoid duplicate logs
    logger.propagate = False

    formatter = logging.Formatter("\033[36mCHATTERHUB\033[0m: %(levelname)-8s %(message)s")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Set level from environment or default to INFO
    logger.setLevel(os.environ.get('CHATTERHUB_LOG_LEVEL', 'INFO').upper())
    return logger

def configure_third_party_logging():
    """Suppress verbose logging from third-party libraries"""
    logging.getLogger('asyncio').setLevel(logging.CRITICAL)

    # Suppress uvicorn access logs unless debug mode
    if os.environ.get('CHATTERHUB_LOG_LEVEL', 'INFO').upper() != 'DEBUG':
        logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
        logging.getLogger('uvicorn.error').setLevel(logging.WARNING)

logger = get_logger()
configure_third_party_logging()
