"""
Session context utilities for POS terminals and storefront sessions using contextvars
"""
from contextvars import ContextVar
import uuid


class SessionContext:
    def __init__(self):
        self.session_id: str | None = None
        self.terminal_id: str | None = None
        self.cashier_id: str | None = None
        self.cart_id: str | None = None
        self.order_code: str | None = None


_session_context_var: ContextVar[SessionContext | None] = ContextVar("session_context", default=None)


def _current_context() -> SessionContext:
    ctx = _session_context_var.get()
    if ctx is None:
        # Each execution context gets its own instance on first use
        ctx = SessionContext()
        _session_context_var.set(ctx)
    return ctx


class _SessionContextProxy:
    def __getattr__(self, name):
        return getattr(_current_context(), name)

    def __setattr__(self, name, value):
        setattr(_current_context(), name, value)


session_context = _SessionContextProxy()


def set_session_context(ctx: SessionContext):
    _session_context_var.set(ctx)


def clear_session_context():
    # Reset to a fresh context
    _session_context_var.set(SessionContext())


def create_session_id() -> str:
    sid = str(uuid.uuid4())
    session_context.session_id = sid
    return sid
