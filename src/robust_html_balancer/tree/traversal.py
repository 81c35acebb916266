"""Mutation-safe depth-first traversal of a tag tree.

The visitor may restructure the tree while it runs. Each node's children are
snapshotted after the node itself was visited and before any child is, so:

* siblings inserted next to the node being visited are not seen in the same
  pass;
* a node that detaches itself during its own visit is not descended into;
* snapshot entries that were detached by an earlier visit are skipped.

Traversal uses an explicit stack, so deep trees do not hit the recursion limit.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, List, Optional, Tuple

from .node import ChildNode, TagNode

VisitFunction = Callable[[Optional[TagNode], Any], Any]

_STOP = "stop"
_SKIP = "skip"
_DESCEND = "descend"


class NodeVisitor(ABC):
    """Visitor invoked for every node and leaf of a subtree."""

    @abstractmethod
    def visit(self, parent: Optional[TagNode], item: Any) -> bool:
        """Handle ``item`` (a TagNode, TextLeaf or CommentLeaf).

        Returns:
            False to stop the whole traversal, True to continue
        """


def _resolve_visit(visitor: Any) -> VisitFunction:
    visit = getattr(visitor, "visit", None)
    if callable(visit):
        return visit
    if callable(visitor):
        return visitor
    raise TypeError("Visitor must provide visit(parent, item) or be callable")


def _visit_node(node: TagNode, visit: VisitFunction) -> str:
    parent = node.parent
    if visit(parent, node) is False:
        return _STOP
    if parent is not None and node.parent is None:
        return _SKIP
    return _DESCEND


def traverse(node: TagNode, visitor: Any) -> bool:
    """Visit ``node`` and its subtree in depth-first pre-order.

    Tag nodes are visited with their parent; leaves with the tag node that
    owns them. Only an explicit ``False`` from the visitor stops traversal.

    Returns:
        False if the visitor stopped the traversal, True otherwise
    """
    visit = _resolve_visit(visitor)
    status = _visit_node(node, visit)
    if status == _STOP:
        return False
    if status == _SKIP:
        return True

    stack: List[Tuple[TagNode, Iterator[ChildNode]]] = [(node, iter(node.children))]
    while stack:
        current, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            continue
        if isinstance(child, TagNode):
            if child.parent is not current:
                continue
            status = _visit_node(child, visit)
            if status == _STOP:
                return False
            if status == _DESCEND:
                stack.append((child, iter(child.children)))
        elif visit(current, child) is False:
            return False
    return True


def iter_tag_nodes(node: TagNode) -> Iterator[TagNode]:
    """Yield ``node`` and every descendant tag node in pre-order."""
    stack: List[Iterator[ChildNode]] = []
    yield node
    stack.append(iter(node.children))
    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
        elif isinstance(child, TagNode):
            yield child
            stack.append(iter(child.children))
