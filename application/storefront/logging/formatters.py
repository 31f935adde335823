"""
JSON formatters for storefront pricing logs
"""
import json
import logging
from datetime import datetime

from storefront.logging.config import LoggingConfig
from storefront.utils.datetime_helpers import VN_TZ

SESSION_FIELDS = ('session_id', 'terminal_id', 'cashier_id', 'cart_id', 'order_code')


class BaseJSONFormatter(logging.Formatter):
    """One JSON object per line, stamped with service and environment"""

    def __init__(self):
        super().__init__()
        self.static_fields = {
            'service': LoggingConfig.SERVICE_NAME,
            'version': LoggingConfig.SERVICE_VERSION,
            'environment': LoggingConfig.APPLICATION_ENVIRONMENT,
        }

    def format(self, record):
        payload = {
            'ts': datetime.fromtimestamp(record.created, VN_TZ).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'event': record.getMessage(),
            'where': f"{record.module}.{record.funcName}:{record.lineno}",
            **self.static_fields,
        }
        if record.exc_info:
            payload['error_type'] = record.exc_info[0].__name__ if record.exc_info[0] else None
            payload['traceback'] = self.formatException(record.exc_info)

        payload.update(self.context_fields(record))
        return json.dumps(payload, ensure_ascii=False, default=str)

    def context_fields(self, record) -> dict:
        return {}


class AppLogsJSONFormatter(BaseJSONFormatter):
    def context_fields(self, record) -> dict:
        return {field: getattr(record, field, '') for field in SESSION_FIELDS}
