"""
Provenance Tree Engine

Turns an append-only provenance graph into a positioned, single-rooted tree
with collapsible bundles of ephemeral states.

LAYER FLOW:
===========
1. Graph store: snapshot of the provenance DAG
2. Bundle detector: anchor -> chain of ephemeral states
3. Tree stratifier: visible tree with effective parents
4. Layout engine: depth, lane and coordinates, links
"""

from .config import (
    LayoutConfig, BundleConfig, NavigationConfig, ProvenanceTreeConfig
)
from .contracts import (
    NodeId, ErrorCode, Error, Result, StructuralInconsistencyError,
    NodeMetadata, NodeArtifacts, ProvenanceNode, GraphSnapshot,
    Bundle, BundleMap, StratifiedNode, StratifiedTree, Link, PositionedTree,
)
from .core import detect_bundles, stratify, layout
from .state import ClusterExpansionState, ViewState
from .store import GraphStore, InMemoryProvenanceGraph
from .engine import ProvenanceTreeEngine, recompute

__version__ = "0.1.0"

__all__ = [
    'LayoutConfig', 'BundleConfig', 'NavigationConfig', 'ProvenanceTreeConfig',
    'NodeId', 'ErrorCode', 'Error', 'Result', 'StructuralInconsistencyError',
    'NodeMetadata', 'NodeArtifacts', 'ProvenanceNode', 'GraphSnapshot',
    'Bundle', 'BundleMap', 'StratifiedNode', 'StratifiedTree', 'Link',
    'PositionedTree',
    'detect_bundles', 'stratify', 'layout',
    'ClusterExpansionState', 'ViewState',
    'GraphStore', 'InMemoryProvenanceGraph',
    'ProvenanceTreeEngine', 'recompute',
]
