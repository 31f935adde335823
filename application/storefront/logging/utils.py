"""
Logging utilities for the storefront pricing engine
"""
import logging

from storefront.logging.config import LoggingConfig
from storefront.logging.handlers import get_app_handler
from storefront.logging.filters import SessionContextFilter, CartContextFilter


def _attach_context_filters(handler: logging.Handler) -> logging.Handler:
    if not any(isinstance(f, SessionContextFilter) for f in handler.filters):
        handler.addFilter(SessionContextFilter())
        handler.addFilter(CartContextFilter())
    return handler


essential_app_logger = None

def get_app_logger(name: str | None = None):
    global essential_app_logger
    if name:
        logger = logging.getLogger(name)
        if not logger.handlers:
            handler = _attach_context_filters(get_app_handler(name.replace('.', '_')))
            logger.addHandler(handler)
            logger.setLevel(LoggingConfig.level())
            logger.propagate = False
        return logger
    if essential_app_logger is None:
        essential_app_logger = get_app_logger('storefront')
    return essential_app_logger


def initialize_logging():
    is_valid, message = LoggingConfig.is_valid_config()
    if not is_valid:
        print(f"Warning: {message}")
    get_app_logger().info(f"logging_initialized | to_file={LoggingConfig.LOG_TO_FILE} level={LoggingConfig.LOG_LEVEL}")
