import os
from dotenv import load_dotenv
load_dotenv()

class StorefrontConfigs:
    def __init__(self):

        # Environment settings
        self.APPLICATION_ENVIRONMENT = os.getenv("APPLICATION_ENVIRONMENT", "UAT")
        self.APP_NAME = os.getenv('APP_NAME', 'storefront-pricing')
        self.APP_VERSION = os.getenv('APP_VERSION', '1.0.0')

        # Currency settings (no minor unit in practice)
        self.CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₫")

        # POS settings
        self.POS_MAX_PENDING_CARTS = int(os.getenv("POS_MAX_PENDING_CARTS", "5"))
        self.DEFAULT_PAYMENT_METHOD = os.getenv("DEFAULT_PAYMENT_METHOD", "cash")

        # Storefront API settings
        self.STOREFRONT_API_ENABLED = os.getenv("STOREFRONT_API_ENABLED", "false").lower() == "true"
        self.STOREFRONT_API_BASE_URL = os.getenv("STOREFRONT_API_BASE_URL", "")
        self.STOREFRONT_API_TOKEN = os.getenv("STOREFRONT_API_TOKEN", "")
        self.STOREFRONT_API_TIMEOUT = int(os.getenv("STOREFRONT_API_TIMEOUT", "30"))
        self.STOREFRONT_API_MAX_RETRIES = int(os.getenv("STOREFRONT_API_MAX_RETRIES", "3"))

        # Logging settings
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR = os.getenv("LOG_DIR", "logs")
        self.LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"
        self.LOG_DEBUG_PRINTS = os.getenv("LOG_DEBUG_PRINTS", "false").lower() == "true"
