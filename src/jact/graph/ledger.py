"""Exactly-once bookkeeping for report emissions."""

from __future__ import annotations

from enum import Enum


class EmissionLayer(Enum):
    """Output layers a node contributes to."""

    ENTRY = "entry"
    """The node's line item in its parent's listing."""

    TRANSITIVE = "transitive"
    """The node's summary line for its transitive dependencies."""

    TOTAL = "total"
    """The footer total of the node's own page."""


class FinalizationLedger:
    """Records which (layer, node identity) pairs have been emitted.

    A node reachable from several parents is visited several times during a
    traversal; :meth:`claim` succeeds only on the first visit per layer.
    """

    def __init__(self) -> None:
        self._finalized: set[tuple[EmissionLayer, str]] = set()
        self._claims: list[tuple[EmissionLayer, str]] = []

    def claim(self, layer: EmissionLayer, identity: str) -> bool:
        """Mark *layer* finalized for *identity*; return False if it already was."""
        key = (layer, identity)
        if key in self._finalized:
            return False
        self._finalized.add(key)
        self._claims.append(key)
        return True

    def is_finalized(self, layer: EmissionLayer, identity: str) -> bool:
        return (layer, identity) in self._finalized

    def claim_count(self, layer: EmissionLayer, identity: str) -> int:
        """Return how many successful claims were made for the pair (0 or 1)."""
        return self._claims.count((layer, identity))

    def __len__(self) -> int:
        return len(self._finalized)
