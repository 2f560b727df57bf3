"""HTTP range parsing and partial-content streaming."""

from __future__ import annotations

from .ranges import NoRange, RangeResult, Satisfiable, Unsatisfiable, parse_range
from .responder import respond

__all__ = [
    "NoRange",
    "RangeResult",
    "Satisfiable",
    "Unsatisfiable",
    "parse_range",
    "respond",
]
