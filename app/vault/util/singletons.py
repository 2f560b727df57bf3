"""Singleton registry for test isolation."""

from __future__ import annotations

from collections.abc import Callable

_reset_fns: list[Callable[[], None]] = []


def register_singleton(reset_fn: Callable[[], None]) -> None:
    """Register a reset function to be called during test teardown.

    Registering the same function twice is a no-op, so a module that is
    re-imported does not reset its singleton more than once.
    """
    if reset_fn not in _reset_fns:
        _reset_fns.append(reset_fn)


def reset_all_singletons() -> None:
    """Rebuild every registered singleton from the current environment."""
    for fn in list(_reset_fns):
        fn()
