"""Shared utilities."""

from .async_helpers import cancel_and_wait, run_sync
from .singletons import register_singleton, reset_all_singletons

__all__ = [
    "cancel_and_wait",
    "register_singleton",
    "reset_all_singletons",
    "run_sync",
]
