"""Bottom-up aggregation of usage counters through the dependency graph.

The traversal is a post-order walk from the project root. A dependency shared
by several parents is reached once per parent, yet each of its three output
layers (entry line, transitive summary, page total) is emitted exactly once;
the graph's :class:`~jact.graph.ledger.FinalizationLedger` gates emission, not
the recursion. Because of that, the first path reaching a shared node decides
the denominators its entry line is rendered with.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from jact.graph.ledger import EmissionLayer
from jact.models.usage import EMPTY_USAGE, UsageCounter, combine

if TYPE_CHECKING:
    from jact.graph.dependency import DependencyGraph, DependencyNode
    from jact.report.sink import ReportSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregationContext:
    """Read-only values threaded down the recursion."""

    ancestor_total: UsageCounter = EMPTY_USAGE
    """Usage already counted at shallower layers; only used for bar denominators."""

    def descend(self, usage: UsageCounter) -> AggregationContext:
        return AggregationContext(self.ancestor_total + usage)


class UsageAggregator:
    """Merges usage bottom-up and emits finalized totals to a sink."""

    def __init__(self, graph: DependencyGraph, sink: ReportSink) -> None:
        self._graph = graph
        self._sink = sink
        self._ledger = graph.ledger
        self._memo: dict[str, UsageCounter] = {}

    def run(self) -> UsageCounter:
        """Aggregate the whole graph from the project root."""
        total = self.aggregate(self._graph.project)
        if total.is_empty:
            logger.warning("No coverage was attributed to %s", self._graph.project.identity)
        logger.info(
            "Aggregated %d dependencies, %d instructions in total",
            len(self._graph),
            total.instructions.total,
        )
        return total

    def aggregate(
        self, node: DependencyNode, context: AggregationContext | None = None
    ) -> UsageCounter:
        """Return the subtree usage of *node*, emitting each layer at most once."""
        if context is None:
            # Top-level call: start a fresh pass
            self._memo.clear()
            context = AggregationContext()

        if node.children:
            child_context = context.descend(node.own_usage)
            children_total = combine(
                *(self._subtree(child, child_context) for child in node.children)
            )
            node.subtree_usage = node.own_usage + children_total
            self._emit_entries(node, children_total)
            self._emit_transitive(node, children_total, context)
        else:
            node.subtree_usage = node.own_usage
            if node.is_project:
                # The dependencies listing exists even when empty
                self._emit_transitive(node, EMPTY_USAGE, context)

        self._memo[node.identity] = node.subtree_usage
        self._emit_total(node)
        return node.subtree_usage

    def _subtree(self, node: DependencyNode, context: AggregationContext) -> UsageCounter:
        memoized = self._memo.get(node.identity)
        if memoized is not None:
            return memoized
        return self.aggregate(node, context)

    def _emit_entries(self, node: DependencyNode, children_total: UsageCounter) -> None:
        for child in node.children:
            if not self._ledger.claim(EmissionLayer.ENTRY, child.identity):
                continue
            for path in child.report_paths:
                self._sink.emit_entry(
                    path, path.name, child.subtree_usage, children_total, False
                )

    def _emit_transitive(
        self, node: DependencyNode, children_total: UsageCounter, context: AggregationContext
    ) -> None:
        if not self._ledger.claim(EmissionLayer.TRANSITIVE, node.identity):
            return
        denominator = node.subtree_usage + context.ancestor_total
        for path in node.report_paths:
            self._sink.emit_transitive_summary(path, children_total, denominator)
            self._sink.emit_grand_total(node.children_dir(path), children_total)

    def _emit_total(self, node: DependencyNode) -> None:
        if not self._ledger.claim(EmissionLayer.TOTAL, node.identity):
            return
        for path in node.report_paths:
            for package, usage in node.package_usage.items():
                self._sink.emit_entry(
                    path / package, package, usage, node.subtree_usage, node.is_project
                )
            self._sink.emit_grand_total(path, node.subtree_usage)


def aggregate(graph: DependencyGraph, sink: ReportSink) -> UsageCounter:
    """Aggregate *graph* into *sink* and return the project's subtree usage."""
    return UsageAggregator(graph, sink).run()
