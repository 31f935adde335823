"""
Logging configuration for the storefront pricing engine.
Local JSON logs: stdout by default, one file per logger when LOG_TO_FILE is set.
"""
import logging

# Settings
from storefront.config.settings import StorefrontConfigs
configs = StorefrontConfigs()


class LoggingConfig:
    """Logging configuration resolved from settings"""

    LOG_LEVEL = configs.LOG_LEVEL
    LOG_DIR = configs.LOG_DIR
    LOG_TO_FILE = configs.LOG_TO_FILE
    LOG_DEBUG_PRINTS = configs.LOG_DEBUG_PRINTS

    SERVICE_NAME = configs.APP_NAME
    SERVICE_VERSION = configs.APP_VERSION
    APPLICATION_ENVIRONMENT = configs.APPLICATION_ENVIRONMENT

    @classmethod
    def level(cls) -> int:
        level = logging.getLevelName(cls.LOG_LEVEL)
        return level if isinstance(level, int) else logging.INFO

    @classmethod
    def is_valid_config(cls):
        """Validate configuration - only check the log directory when file logging is on"""
        if cls.LOG_TO_FILE and not cls.LOG_DIR:
            return False, "LOG_DIR must be set when LOG_TO_FILE is enabled"
        return True, "Configuration is valid"
