"""Tree layer for tag balancing.

This module provides the tag tree, the balancer that builds it from a token
stream, and the read and repair passes that operate on it.

Key Components:
    TagBalancer: Stack-based repair engine turning tokens into a tree
    TagNode: Element of the repaired tree
    ContentModelRegistry: Per-tag nesting rules consulted by the balancer
    TreePruner: Post-construction pruning pass
    traverse: Mutation-safe depth-first traversal
    iter_tokens: Tree back to token stream
"""

from .builder import (
    XHTML_NAMESPACE,
    BalanceResult,
    RepairRecord,
    RepairType,
    TagBalancer,
)
from .conditions import (
    AndCondition,
    AttributeValueCondition,
    AutoGeneratedCondition,
    HasAttributeCondition,
    MatchAllCondition,
    NameCondition,
    NameInCondition,
    NotCondition,
    OrCondition,
    TagNodeCondition,
)
from .content_model import (
    ContentModel,
    ContentModelRegistry,
    default_registry,
)
from .leaves import CommentLeaf, DoctypeMarker, TextLeaf
from .node import TagNode
from .pruning import TreePruner
from .traversal import NodeVisitor, iter_tag_nodes, traverse
from .walker import iter_tokens

__all__ = [
    "XHTML_NAMESPACE",
    "BalanceResult",
    "RepairRecord",
    "RepairType",
    "TagBalancer",
    "AndCondition",
    "AttributeValueCondition",
    "AutoGeneratedCondition",
    "HasAttributeCondition",
    "MatchAllCondition",
    "NameCondition",
    "NameInCondition",
    "NotCondition",
    "OrCondition",
    "TagNodeCondition",
    "ContentModel",
    "ContentModelRegistry",
    "default_registry",
    "CommentLeaf",
    "DoctypeMarker",
    "TextLeaf",
    "TagNode",
    "TreePruner",
    "NodeVisitor",
    "iter_tag_nodes",
    "traverse",
    "iter_tokens",
]
