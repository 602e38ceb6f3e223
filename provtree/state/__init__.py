"""
View State Layer

Explicit, immutable view state: bundle expansion and the open annotation.
"""

from .expansion import ClusterExpansionState
from .view import ViewState

__all__ = ['ClusterExpansionState', 'ViewState']
