"""Standing orders service public API."""

import importlib
from typing import TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "AdminApiClient",
    "PreferenceStore",
    "RemoteApiError",
    "RetryPolicy",
    "StandingOrderJob",
    "StandingOrdersConfig",
    "__version__",
    "create_app",
    "create_standing_orders_router",
    "register_exception_handlers",
    "verify_signature",
]

if TYPE_CHECKING:
    from fastapi_standing_orders.app import create_app
    from fastapi_standing_orders.client import AdminApiClient
    from fastapi_standing_orders.config import StandingOrdersConfig
    from fastapi_standing_orders.exceptions import (
        RemoteApiError,
        register_exception_handlers,
    )
    from fastapi_standing_orders.jobs import StandingOrderJob
    from fastapi_standing_orders.retry import RetryPolicy
    from fastapi_standing_orders.router import create_standing_orders_router
    from fastapi_standing_orders.signature import verify_signature
    from fastapi_standing_orders.store import PreferenceStore

_LAZY = {
    "AdminApiClient": "fastapi_standing_orders.client",
    "PreferenceStore": "fastapi_standing_orders.store",
    "RemoteApiError": "fastapi_standing_orders.exceptions",
    "RetryPolicy": "fastapi_standing_orders.retry",
    "StandingOrderJob": "fastapi_standing_orders.jobs",
    "StandingOrdersConfig": "fastapi_standing_orders.config",
    "create_app": "fastapi_standing_orders.app",
    "create_standing_orders_router": "fastapi_standing_orders.router",
    "register_exception_handlers": "fastapi_standing_orders.exceptions",
    "verify_signature": "fastapi_standing_orders.signature",
}


def __getattr__(name: str):
    # Lazy imports to avoid loading all submodules on package import.
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(
            f"module 'fastapi_standing_orders' has no attribute {name!r}"
        )
    return getattr(importlib.import_module(module_name), name)
