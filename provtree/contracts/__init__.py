"""
Provenance Tree Contracts

Immutable types shared by all pipeline stages.
"""

from .base import (
    NodeId, ErrorCode, Error, Result, StructuralInconsistencyError
)
from .graph import (
    NodeMetadata, NodeArtifacts, ProvenanceNode, GraphSnapshot
)
from .layout import (
    Bundle, BundleMap, StratifiedNode, StratifiedTree, Link, PositionedTree
)

__all__ = [
    'NodeId', 'ErrorCode', 'Error', 'Result', 'StructuralInconsistencyError',
    'NodeMetadata', 'NodeArtifacts', 'ProvenanceNode', 'GraphSnapshot',
    'Bundle', 'BundleMap', 'StratifiedNode', 'StratifiedTree', 'Link',
    'PositionedTree',
]
