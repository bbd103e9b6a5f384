"""
Service wiring for the API.
Holds the process-wide store, identity resolver and ledger used by the routes.
"""
from typing import Callable, Optional

# Will be initialized in main.py when the app starts (or injected by tests)
_store = None
_identity = None
_ledger = None


def init_services(store, clock: Optional[Callable] = None, cache_ttl_seconds: Optional[int] = None):
    """Build the identity resolver and ledger over ``store``. Called from main.py."""
    global _store, _identity, _ledger
    from orders.identity import IdentityResolver
    from orders.ledger import OrderLedger

    _store = store
    _identity = IdentityResolver(store, cache_ttl_seconds=cache_ttl_seconds)
    _ledger = OrderLedger(store, clock=clock)


def is_initialized() -> bool:
    return _store is not None


def reset_services():
    """Forget the wired services (tests)."""
    global _store, _identity, _ledger
    _store = _identity = _ledger = None


def _lazy_init():
    """Connect to Google Sheets with the configured credentials if not already done."""
    if _store is not None:
        return
    from sheets.store import TabularStore
    init_services(TabularStore())


def get_identity():
    """Get the identity resolver instance."""
    _lazy_init()
    return _identity


def get_ledger():
    """Get the order ledger instance."""
    _lazy_init()
    return _ledger
