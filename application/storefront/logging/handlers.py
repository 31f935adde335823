"""
Logging handlers for storefront pricing logs.
Stdout by default, local file per logger when file logging is enabled.
"""
import logging
import os
import sys

from storefront.logging.config import LoggingConfig
from storefront.logging.formatters import AppLogsJSONFormatter


def dbg(msg: str) -> None:
    """Lightweight debug print; enabled when LOG_DEBUG_PRINTS=true"""
    if LoggingConfig.LOG_DEBUG_PRINTS:
        print(msg)


_handlers = {}


def get_local_file_handler(name: str = 'app'):
    os.makedirs(LoggingConfig.LOG_DIR, exist_ok=True)
    handler = logging.FileHandler(os.path.join(LoggingConfig.LOG_DIR, f'{name}.log'), encoding='utf-8')
    handler.setFormatter(AppLogsJSONFormatter())
    dbg(f"[Logging] file handler created name={name} dir={LoggingConfig.LOG_DIR}")
    return handler


def get_stream_handler():
    if 'stream' not in _handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(AppLogsJSONFormatter())
        _handlers['stream'] = handler
    return _handlers['stream']


def get_app_handler(name: str = 'app'):
    if LoggingConfig.LOG_TO_FILE:
        return get_local_file_handler(name)
    return get_stream_handler()
