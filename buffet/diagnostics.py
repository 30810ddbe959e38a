"""
Buffet diagnostics: structured skip/error accounting for one buffet call.

Provides:
  - SkipRecord: single skip event with a category and detail string.
  - BuffetDiagnostics: what one generate_buffet() call processed, what it
    skipped, and why.  Returned to the caller alongside the cards so a
    partial or empty report still explains itself.

Skip categories (for SkipRecord.category):
    error_skip          entity field value could not be parsed
    name_collision      distinct entity ids share one display name
    insufficient_data   no categories or too few fiscal points for a card
    render_skip         a renderer produced no card for its input
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class SkipRecord:
    """One thing that was skipped, with a machine-readable category."""

    category: str          # e.g. "error_skip", "insufficient_data"
    detail: str            # human-readable explanation
    item: str = ""         # optional: entity name, chart kind, etc.

    def to_dict(self) -> dict[str, str]:
        d: dict[str, str] = {"category": self.category, "detail": self.detail}
        if self.item:
            d["item"] = self.item
        return d


@dataclass
class BuffetDiagnostics:
    """Structured summary of one buffet generation."""

    entity_type: str = ""
    field_id: str = ""
    status: str = "started"                    # started | completed | failed
    started_at: float = field(default_factory=time.monotonic)
    elapsed_seconds: float = 0.0
    entities_in: int = 0
    entities_processed: int = 0
    items_skipped: int = 0
    items_errored: int = 0
    cards_generated: int = 0
    skips: list[SkipRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)

    # ── helpers ───────────────────────────────────────────────────────────

    def add_skip(self, category: str, detail: str, item: str = "") -> None:
        self.skips.append(SkipRecord(category=category, detail=detail, item=item))
        self.items_skipped += 1

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.items_errored += 1

    def skip_counts_by_category(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for s in self.skips:
            counts[s.category] = counts.get(s.category, 0) + 1
        return counts

    def finish(self, status: str = "completed") -> None:
        self.elapsed_seconds = time.monotonic() - self.started_at
        self.status = status

    def console_summary(self) -> str:
        """One-line summary suitable for the terminal."""
        parts: list[str] = []
        if self.entities_processed:
            parts.append(f"{self.entities_processed:,} entities")
        if self.cards_generated:
            parts.append(f"{self.cards_generated} cards")
        if self.items_skipped:
            cats = self.skip_counts_by_category()
            skip_parts = [f"{v} {k.replace('_', ' ')}" for k, v in sorted(cats.items())]
            parts.append(f"{self.items_skipped:,} skipped ({', '.join(skip_parts)})")
        if self.items_errored:
            parts.append(f"{self.items_errored:,} errors")
        return " | ".join(parts) if parts else "no activity"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "entity_type": self.entity_type,
            "field_id": self.field_id,
            "status": self.status,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "entities_in": self.entities_in,
            "entities_processed": self.entities_processed,
            "items_skipped": self.items_skipped,
            "items_errored": self.items_errored,
            "cards_generated": self.cards_generated,
        }
        if self.metrics:
            d["metrics"] = self.metrics
        if self.skips:
            d["skips"] = [s.to_dict() for s in self.skips]
        if self.errors:
            d["errors"] = self.errors
        return d
