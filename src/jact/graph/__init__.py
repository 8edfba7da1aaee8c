"""Dependency graph construction and bookkeeping."""

from jact.graph.dependency import (
    DEPENDENCIES_DIR,
    RESOURCES_DIR,
    TRANSITIVE_DIR,
    Coordinates,
    DependencyGraph,
    DependencyNode,
)
from jact.graph.ledger import EmissionLayer, FinalizationLedger
from jact.graph.maven_tree import (
    DEFAULT_SCOPES,
    load_dependency_tree,
    parse_coordinates,
    parse_dependency_tree,
    read_dependency_tree,
)

__all__ = [
    "DEFAULT_SCOPES",
    "DEPENDENCIES_DIR",
    "RESOURCES_DIR",
    "TRANSITIVE_DIR",
    "Coordinates",
    "DependencyGraph",
    "DependencyNode",
    "EmissionLayer",
    "FinalizationLedger",
    "load_dependency_tree",
    "parse_coordinates",
    "parse_dependency_tree",
    "read_dependency_tree",
]
