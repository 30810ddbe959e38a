"""
Buffet package -- chart buffet view-card engine.

Re-exports key entry points so callers can do::

    from buffet import generate_buffet, ViewOptions
"""

from buffet.generator import BuffetResult, generate_buffet, generate_from_store
from buffet.models import Card, Entity, ViewOptions
from buffet.store import InMemoryEntityStore, JsonEntityStore

__all__ = [
    "BuffetResult",
    "Card",
    "Entity",
    "InMemoryEntityStore",
    "JsonEntityStore",
    "ViewOptions",
    "generate_buffet",
    "generate_from_store",
]
