"""
Graph Store Layer

The engine depends only on the GraphStore interface.
"""

from .memory import GraphStore, InMemoryProvenanceGraph

__all__ = ['GraphStore', 'InMemoryProvenanceGraph']
