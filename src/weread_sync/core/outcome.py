"""
Batch Outcome Module

Best-effort loops (block deletion, readnote creation) record one outcome per
item instead of a bare boolean; overall success is derived from the list.
"""

from typing import Any, Iterable, List, Optional


class ItemOutcome:
    """Result of processing a single item."""

    def __init__(self, item: Any, ok: bool, error: Optional[str] = None):
        self.item = item
        self.ok = ok
        self.error = error

    def __repr__(self):
        status = "ok" if self.ok else f"failed: {self.error}"
        return f"ItemOutcome({self.item!r}, {status})"


class BatchResult:
    """Accumulates per-item outcomes of a best-effort loop."""

    def __init__(self, outcomes: Iterable[ItemOutcome] = ()):
        self.outcomes: List[ItemOutcome] = list(outcomes)

    def record(self, item: Any, ok: bool, error: Optional[str] = None) -> ItemOutcome:
        outcome = ItemOutcome(item, ok, error)
        self.outcomes.append(outcome)
        return outcome

    @property
    def succeeded(self) -> List[Any]:
        return [o.item for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[Any]:
        return [o.item for o in self.outcomes if not o.ok]

    @property
    def success(self) -> bool:
        """True when no item failed (an empty batch succeeds)."""
        return all(o.ok for o in self.outcomes)

    def __bool__(self):
        return self.success

    def __len__(self):
        return len(self.outcomes)

    def __repr__(self):
        return f"BatchResult(ok={len(self.succeeded)}, failed={len(self.failed)})"
