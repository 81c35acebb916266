"""Post-construction pruning pass.

Runs once over a balanced tree and removes nodes that the configuration marks
as unwanted: tags named in ``prune_tags``, nodes matching a caller condition,
auto-generated copies that never received content and, optionally, empty
nodes. The walk is post-order so that a parent is judged after its children
were pruned.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from robust_html_balancer.shared import CorrelationLogger, PruningConfig, get_logger

from .content_model import ContentModelRegistry, default_registry
from .leaves import TextLeaf
from .node import TagNode


class TreePruner:
    """Removes unwanted nodes from a balanced tree."""

    def __init__(
        self,
        config: Optional[PruningConfig] = None,
        registry: Optional[ContentModelRegistry] = None,
        logger: Optional[CorrelationLogger] = None,
    ) -> None:
        self.config = config if config is not None else PruningConfig()
        self.registry = registry if registry is not None else default_registry()
        self.logger = logger if logger is not None else get_logger(
            __name__, component="tree_pruner"
        )

    def prune(self, root: TagNode) -> List[TagNode]:
        """Prune the subtree below ``root``; the root itself is always kept.

        Returns:
            The pruned nodes in the order they were removed
        """
        removed: List[TagNode] = []
        move_up = self.config.move_pruned_children_up
        stack: List[Tuple[TagNode, Iterator[TagNode]]] = [(root, iter(root.child_tags))]

        while stack:
            node, pending = stack[-1]
            child = next(pending, None)
            if child is not None:
                if child.parent is not node:
                    continue
                if not move_up and self._is_target(child):
                    self._excise(child, removed)
                    continue
                stack.append((child, iter(child.child_tags)))
                continue

            stack.pop()
            if node is not root and self._should_prune(node):
                self._excise(node, removed)

        return removed

    def _is_target(self, node: TagNode) -> bool:
        """Whether ``node`` is named in ``prune_tags`` or matches a condition."""
        name = node.name
        if name is not None and name.lower() in self.config.prune_tags:
            return True
        return any(condition.satisfy(node) for condition in self.config.prune_conditions)

    def _should_prune(self, node: TagNode) -> bool:
        if self._is_target(node):
            return True
        if (
            self.config.remove_unused_auto_generated
            and node.auto_generated
            and _holds_only_blank_text(node)
        ):
            return True
        return self.config.prune_empty_nodes and self._is_prunable_empty(node)

    def _is_prunable_empty(self, node: TagNode) -> bool:
        """Empty-node rule: no attributes and nothing but blank text inside."""
        if node.attributes:
            return False
        name = (node.name or "").lower()
        if name in self.config.empty_prune_exempt_tags:
            return False
        if not node.is_foreign_markup and self.registry.is_empty_tag(name):
            return False
        return _holds_only_blank_text(node)

    def _excise(self, node: TagNode, removed: List[TagNode]) -> None:
        """Flag ``node`` as pruned and take it out of its parent."""
        parent = node.parent
        node.pruned = True

        if self.config.move_pruned_children_up:
            index = parent.get_child_index(node)
            children = node.children
            declarations = (
                node.namespace_declarations
                if self.config.carry_namespace_declarations
                else None
            )
            node.remove_all_children()
            parent.remove_child(node)
            for offset, child in enumerate(children):
                if declarations and isinstance(child, TagNode):
                    _carry_declarations(child, declarations)
                parent.insert_child(index + offset, child)
        else:
            parent.remove_child(node)

        removed.append(node)
        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Pruned node",
                extra={"tag_name": node.name, "moved_children": self.config.move_pruned_children_up},
            )


def _holds_only_blank_text(node: TagNode) -> bool:
    """No element or comment children and no visible text."""
    return all(
        isinstance(child, TextLeaf) and child.is_blank for child in node.children
    )


def _carry_declarations(child: TagNode, declarations: dict) -> None:
    own = child.namespace_declarations or {}
    for prefix, uri in declarations.items():
        if prefix not in own:
            child.add_namespace_declaration(prefix, uri)
