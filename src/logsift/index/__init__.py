"""Index strategies.

This package contains the index contract and the available scoring engines.
"""

from .base import Index, IndexBuilder, IndexConfig, available_strategies, get_strategy, register_strategy
from .hashing import HashingIndex, new


__all__ = [
    # Base classes
    'Index',
    'IndexBuilder',
    'IndexConfig',
    # Registry
    'available_strategies',
    'get_strategy',
    'register_strategy',
    # Strategies
    'HashingIndex',
    'new',
]
