"""
Logging filters that stamp session and cart context on every record
"""
import logging
from storefront.core.session_context import session_context


class SessionContextFilter(logging.Filter):
    def filter(self, record):
        record.session_id = getattr(session_context, 'session_id', '') or ''
        record.terminal_id = getattr(session_context, 'terminal_id', '') or ''
        record.cashier_id = getattr(session_context, 'cashier_id', '') or ''
        return True


class CartContextFilter(logging.Filter):
    def filter(self, record):
        record.cart_id = getattr(session_context, 'cart_id', '') or ''
        record.order_code = getattr(session_context, 'order_code', '') or ''
        return True
