"""Core tag-balancing implementation.

This module implements the repair engine that turns a tag-soup token stream
into a well-formed tree of ``TagNode`` objects. Malformed markup never makes
the balancer fail: implied closes, out-of-order closes, interrupted
formatting elements and stray close tags are repaired on the tree side and
reported as ``RepairRecord`` entries.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from robust_html_balancer.shared import (
    BalancerConfig,
    BalancingMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from robust_html_balancer.tokenization import Token, TokenType

from .content_model import ContentModel, ContentModelRegistry, default_registry
from .leaves import CommentLeaf, DoctypeMarker, TextLeaf
from .node import TagNode
from .pruning import TreePruner
from .traversal import iter_tag_nodes

XHTML_NAMESPACE = "http://www.w3.org/1999/xhtml"

_COMPONENT = "tag_balancer"


class RepairType(Enum):
    """Kinds of structural repair applied while balancing."""

    IMPLICIT_CLOSE = auto()             # Ancestor closed by an opening tag
    FORCED_CLOSE = auto()               # Element closed by an outer close tag
    AUTO_REOPEN = auto()                # Interrupted element continued in a copy
    ORPHAN_CLOSE_DISCARDED = auto()     # Close tag without open element
    DUPLICATE_DOCTYPE_IGNORED = auto()  # Doctype after the first one
    UNCLOSED_AT_END = auto()            # Element still open at end of input
    ROOT_MERGED = auto()                # Repeated root tag merged into the root
    PRUNED = auto()                     # Node removed by the pruning pass


_REPAIR_SEVERITY = {
    RepairType.ORPHAN_CLOSE_DISCARDED: DiagnosticSeverity.WARNING,
    RepairType.DUPLICATE_DOCTYPE_IGNORED: DiagnosticSeverity.WARNING,
}


@dataclass
class RepairRecord:
    """Information about one structural repair."""

    repair_type: RepairType
    description: str
    tag_name: Optional[str] = None
    element_path: Optional[str] = None
    position: Optional[Dict[str, int]] = None

    def __post_init__(self) -> None:
        """Validate repair information."""
        if not isinstance(self.repair_type, RepairType):
            raise TypeError("repair_type must be a RepairType member")
        if not self.description:
            raise ValueError("Repair description cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "repair_type": self.repair_type.name,
            "description": self.description,
        }
        if self.tag_name is not None:
            result["tag_name"] = self.tag_name
        if self.element_path is not None:
            result["element_path"] = self.element_path
        if self.position:
            result["position"] = dict(self.position)
        return result


@dataclass
class BalanceResult:
    """Balanced tree together with the repairs and diagnostics behind it."""

    root: TagNode
    success: bool = True
    repairs: List[RepairRecord] = field(default_factory=list)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: BalancingMetrics = field(default_factory=BalancingMetrics)
    correlation_id: Optional[str] = None

    @property
    def repair_count(self) -> int:
        return len(self.repairs)

    @property
    def has_repairs(self) -> bool:
        """Check if the input needed any structural repair."""
        return bool(self.repairs)

    @property
    def element_count(self) -> int:
        """Number of tag nodes in the tree, root included."""
        return sum(1 for _ in iter_tag_nodes(self.root))

    def get_repairs_by_type(self, repair_type: RepairType) -> List[RepairRecord]:
        return [repair for repair in self.repairs if repair.repair_type is repair_type]

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the balancing run."""
        repair_types: Dict[str, int] = {}
        for repair in self.repairs:
            key = repair.repair_type.name
            repair_types[key] = repair_types.get(key, 0) + 1

        return {
            "success": self.success,
            "element_count": self.element_count,
            "repair_count": self.repair_count,
            "repair_types": repair_types,
            "diagnostic_count": len(self.diagnostics),
            "has_errors": self.has_errors(),
            "metrics": self.metrics.to_dict(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "correlation_id": self.correlation_id,
            "tree": self.root.to_dict(),
            "repairs": [repair.to_dict() for repair in self.repairs],
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
            "metrics": self.metrics.to_dict(),
        }


class TagBalancer:
    """Stack-based balancer building a repaired tree from a token stream.

    The root node sits at the bottom of the open-element stack for the whole
    run and is never popped. One balancer processes one document at a time;
    the content-model registry may be shared between balancers on different
    threads.
    """

    def __init__(
        self,
        config: Optional[BalancerConfig] = None,
        registry: Optional[ContentModelRegistry] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the balancer.

        Args:
            config: Balancer configuration (defaults to ``BalancerConfig()``)
            registry: Content-model rules (defaults to the HTML registry)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config if config is not None else BalancerConfig()
        self.registry = registry if registry is not None else default_registry()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, _COMPONENT)

        self._stack: List[TagNode] = []
        self._root: Optional[TagNode] = None
        self._result: Optional[BalanceResult] = None
        self._position: Optional[Dict[str, int]] = None

    def process(self, tokens: Iterable[Token]) -> TagNode:
        """Balance ``tokens`` and return the root of the repaired tree."""
        return self.build(tokens).root

    def build(self, tokens: Iterable[Token]) -> BalanceResult:
        """Balance ``tokens`` and report every repair that was applied.

        Args:
            tokens: Token stream, consumed once and strictly in order

        Returns:
            BalanceResult with the root node, repairs, diagnostics and metrics

        Raises:
            TypeError: If the stream contains something other than ``Token``
        """
        start_time = time.time()
        self._reset_state()
        result = self._result
        metrics = result.metrics

        self.logger.info(
            "Starting tag balancing",
            extra={"root_name": self._root.name, "config_name": self.config.name},
        )

        for token in tokens:
            self._process_token(token)

        self._close_remaining()

        self._position = None
        if self.config.pruning.is_active:
            pruner = TreePruner(self.config.pruning, self.registry, self.logger)
            for node in pruner.prune(self._root):
                metrics.nodes_pruned += 1
                self._record(
                    RepairType.PRUNED, f"Pruned <{node.name}>", tag_name=node.name
                )

        metrics.processing_time_ms = (time.time() - start_time) * 1000
        self._stack = []
        self._result = None

        self.logger.info(
            "Tag balancing completed",
            extra={
                "tokens_processed": metrics.tokens_processed,
                "repair_count": result.repair_count,
                "processing_time_ms": metrics.processing_time_ms,
            },
        )
        return result

    def _reset_state(self) -> None:
        """Reset internal state for a new document."""
        root = TagNode(self.config.tree.root_name)
        root.auto_generated = True
        root.set_foreign_markup(False)

        self._root = root
        self._stack = [root]
        self._position = None
        self._result = BalanceResult(root=root, correlation_id=self.correlation_id)

    @property
    def _current(self) -> TagNode:
        return self._stack[-1]

    # ------------------------------------------------------------------
    # Token dispatch
    # ------------------------------------------------------------------

    def _process_token(self, token: Token) -> None:
        """Process one token against the open-element stack."""
        if not isinstance(token, Token):
            raise TypeError(
                f"Expected Token instance, got {type(token).__name__}"
            )
        self._result.metrics.tokens_processed += 1
        self._position = token.position.to_dict() if token.position else None

        if token.type is TokenType.OPEN_TAG:
            self._handle_open_tag(token)
        elif token.type is TokenType.CLOSE_TAG:
            self._handle_close_tag(token)
        elif token.type is TokenType.TEXT:
            if token.content:
                self._current.add_child(TextLeaf(token.content))
        elif token.type is TokenType.COMMENT:
            self._current.add_child(CommentLeaf(token.content))
        elif token.type is TokenType.DOCTYPE:
            self._handle_doctype(token)

    def _handle_doctype(self, token: Token) -> None:
        if self._root.doctype is None:
            self._root.doctype = DoctypeMarker(token.content)
            return
        self._record(
            RepairType.DUPLICATE_DOCTYPE_IGNORED,
            "Ignored doctype after the first one",
            details={"doctype": token.content},
        )

    # ------------------------------------------------------------------
    # Open tags
    # ------------------------------------------------------------------

    def _handle_open_tag(self, token: Token) -> None:
        name = _clean_name(token.value)
        in_foreign = self._current.is_foreign_markup

        if not in_foreign and self._is_root_name(name):
            self._merge_into_root(token)
            return

        model = ContentModel(name=name or "", known=False) if in_foreign else self.registry.get(name)

        pending: List[TagNode] = []
        if model.closes:
            pending = self._close_implied(name, model.closes)

        node = self._create_node(name, token)
        self._stack.append(node)
        if self._should_self_close(node, token, model, in_foreign):
            self._pop_element()

        # Reopened copies go inside the new node, or after it when it is void.
        self._reopen(pending)

    def _close_implied(self, opened: Optional[str], closes: FrozenSet[str]) -> List[TagNode]:
        """Pop stack-top elements that ``opened`` implicitly closes.

        Returns:
            The popped elements to reopen, outermost first
        """
        pending: List[TagNode] = []
        while len(self._stack) > 1:
            top = self._current
            if top.is_foreign_markup or top.name not in closes:
                break
            self._pop_element()
            self._result.metrics.implicit_closes += 1
            self._record(
                RepairType.IMPLICIT_CLOSE,
                f"<{top.name}> implicitly closed by <{opened}>",
                top,
            )
            if self.registry.is_continuable(top.name, opened):
                pending.append(top)
        pending.reverse()
        return pending

    def _create_node(self, name: Optional[str], token: Token) -> TagNode:
        """Create the node for an open tag and attach it to the stack top."""
        parent = self._current
        node = TagNode(name)
        for attr_name, attr_value in token.attributes:
            node.set_attribute(attr_name, attr_value)
        parent.add_child(node)

        if self.config.namespaces.namespaces_aware:
            _declare_namespaces(node, token)
        node.set_foreign_markup(self._is_foreign(node, parent))
        if (
            self.config.tree.use_cdata_for_script_and_style
            and not node.is_foreign_markup
            and self.registry.is_raw_text(node.name)
        ):
            node.cdata_content = True

        self._result.metrics.nodes_created += 1
        return node

    def _is_foreign(self, node: TagNode, parent: TagNode) -> bool:
        """Classify ``node`` as foreign markup (SVG, MathML, prefixed XML)."""
        if not self.config.namespaces.foreign_markup:
            return False

        aware = self.config.namespaces.namespaces_aware
        prefix = node.namespace_prefix
        if prefix:
            uri = node.get_namespace_uri_on_path(prefix) if aware else None
            return uri != XHTML_NAMESPACE

        declarations = node.namespace_declarations if aware else None
        if declarations and "" in declarations:
            return declarations[""] != XHTML_NAMESPACE
        if self.registry.is_foreign_root(node.raw_name):
            return True
        return parent.is_foreign_markup

    def _should_self_close(
        self, node: TagNode, token: Token, model: ContentModel, in_foreign: bool
    ) -> bool:
        if model.empty and not in_foreign and not node.is_foreign_markup:
            return True
        if not token.self_closing:
            return False
        if node.is_foreign_markup:
            return self.config.tree.honor_self_closing_foreign
        return not model.known

    def _is_root_name(self, name: Optional[str]) -> bool:
        return name is not None and name.lower() == self._root.name.lower()

    def _merge_into_root(self, token: Token) -> None:
        """Fold a root open tag into the synthetic root."""
        root = self._root
        repeated = not root.auto_generated
        for attr_name, attr_value in token.attributes:
            if not root.has_attribute(attr_name):
                root.set_attribute(attr_name, attr_value)
        if self.config.namespaces.namespaces_aware:
            _declare_namespaces(root, token)
        root.auto_generated = False
        if repeated:
            self._record(
                RepairType.ROOT_MERGED,
                f"Merged repeated <{root.name}> into the document root",
                root,
            )

    # ------------------------------------------------------------------
    # Close tags
    # ------------------------------------------------------------------

    def _handle_close_tag(self, token: Token) -> None:
        name = _clean_name(token.value)
        index = self._find_open_element(name)
        if index is None:
            self._result.metrics.orphan_close_tags += 1
            self._record(
                RepairType.ORPHAN_CLOSE_DISCARDED,
                f"Discarded close tag </{name}> without open element",
                tag_name=name,
            )
            return

        forced: List[TagNode] = []
        while len(self._stack) - 1 > index:
            node = self._pop_element()
            forced.append(node)
            self._result.metrics.forced_closes += 1
            self._record(
                RepairType.FORCED_CLOSE,
                f"<{node.name}> force-closed by </{name}>",
                node,
            )

        if index == 0:
            return

        matched = self._pop_element()
        self._reopen(
            [
                node for node in reversed(forced)
                if not node.is_foreign_markup
                and self.registry.is_continuable(node.name, matched.name)
            ]
        )

    def _find_open_element(self, name: Optional[str]) -> Optional[int]:
        """Stack index of the nearest open element named ``name``."""
        for index in range(len(self._stack) - 1, -1, -1):
            candidate = self._stack[index].raw_name
            if candidate is None or name is None:
                if candidate is None and name is None:
                    return index
                continue
            if self._stack[index].is_foreign_markup:
                if candidate == name:
                    return index
            elif candidate.lower() == name.lower():
                return index
        return None

    # ------------------------------------------------------------------
    # Stack helpers
    # ------------------------------------------------------------------

    def _pop_element(self) -> TagNode:
        node = self._stack.pop()
        node.set_formed()
        return node

    def _reopen(self, originals: List[TagNode]) -> None:
        """Continue ``originals`` (outermost first) in nested auto-generated copies."""
        for original in originals:
            copy = original.make_copy()
            copy.auto_generated = True
            self._current.add_child(copy)
            self._stack.append(copy)
            self._result.metrics.reopened_elements += 1
            self._record(
                RepairType.AUTO_REOPEN, f"Reopened <{copy.name}>", copy
            )

    def _close_remaining(self) -> None:
        """Close every element still open at the end of input."""
        while len(self._stack) > 1:
            node = self._pop_element()
            self._record(
                RepairType.UNCLOSED_AT_END,
                f"<{node.name}> closed at end of input",
                node,
            )
        self._root.set_formed()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _record(
        self,
        repair_type: RepairType,
        description: str,
        node: Optional[TagNode] = None,
        tag_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a repair and emit the matching diagnostic."""
        global_config = self.config.global_
        detailed = global_config.diagnostic_detail_level == "detailed"
        if node is not None:
            tag_name = node.name
        path = node.get_path() if node is not None and detailed else None

        repair = RepairRecord(
            repair_type=repair_type,
            description=description,
            tag_name=tag_name,
            element_path=path,
            position=self._position,
        )
        self._result.repairs.append(repair)

        severity = _REPAIR_SEVERITY.get(repair_type, DiagnosticSeverity.INFO)
        if global_config.enable_diagnostics and (
            global_config.diagnostic_detail_level != "minimal"
            or severity is not DiagnosticSeverity.INFO
        ):
            diag_details: Dict[str, Any] = {"repair_type": repair_type.name}
            if path is not None:
                diag_details["element_path"] = path
            if details:
                diag_details.update(details)
            self._result.add_diagnostic(
                severity,
                description,
                _COMPONENT,
                position=self._position,
                details=diag_details,
            )

        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                description,
                extra={"repair_type": repair_type.name, "tag_name": tag_name},
            )


def _clean_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    return name.strip() or None


def _declare_namespaces(node: TagNode, token: Token) -> None:
    """Record ``xmlns`` and ``xmlns:prefix`` attributes as declarations."""
    for attr_name, attr_value in token.attributes:
        if attr_name is None:
            continue
        key = attr_name.strip()
        lowered = key.lower()
        if lowered == "xmlns":
            node.add_namespace_declaration("", attr_value)
        elif lowered.startswith("xmlns:") and len(key) > len("xmlns:"):
            node.add_namespace_declaration(key[len("xmlns:"):], attr_value)
