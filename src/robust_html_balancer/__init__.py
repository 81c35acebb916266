"""Robust HTML Balancer.

A never-fail tag balancer that turns tag-soup token streams into well-formed
element trees, repairing implied and out-of-order closes, reopening
interrupted formatting elements, resolving namespace scopes and pruning
unwanted nodes.

Progressive API Disclosure:
- Level 1: Simple functions - balance(), balance_to_tree()
- Level 2: Configured balancer - TagBalancer with BalancerConfig
- Level 3: Tree access - TagNode search, traversal and mutation
"""

__version__ = "0.1.0"
__author__ = "Robust HTML Balancer Team"

# Progressive API disclosure - Level 1: Simple functions
from .api import balance, balance_to_tree

# Configuration classes for advanced usage
from .shared.config import BalancerConfig, PruningConfig

# Token interface
from .tokenization import Token, TokenPosition, TokenType

# Level 2 and 3: balancer, results and tree
from .tree import (
    BalanceResult,
    ContentModelRegistry,
    RepairRecord,
    RepairType,
    TagBalancer,
    TagNode,
    default_registry,
    iter_tokens,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple balancing functions
    "balance",
    "balance_to_tree",

    # Level 2: Configured balancer
    "TagBalancer",
    "ContentModelRegistry",
    "default_registry",

    # Tokens, result objects and tree
    "Token",
    "TokenPosition",
    "TokenType",
    "BalanceResult",
    "RepairRecord",
    "RepairType",
    "TagNode",
    "iter_tokens",

    # Configuration classes for advanced usage
    "BalancerConfig",
    "PruningConfig",
]
