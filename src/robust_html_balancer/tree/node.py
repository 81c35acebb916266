"""Tag node - the element type of the repaired tree.

A ``TagNode`` owns an ordered list of children (tag nodes, text leaves and
comment leaves), an ordered case-insensitive attribute map, optional namespace
declarations and the bookkeeping flags the balancer sets while repairing the
document. The parent link is a weak reference so that a tree never holds an
ownership cycle.
"""

import re
import weakref
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
)

from .conditions import (
    AttributeValueCondition,
    HasAttributeCondition,
    MatchAllCondition,
    NameCondition,
    TagNodeCondition,
)
from .leaves import CommentLeaf, DoctypeMarker, TextLeaf

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

ChildNode = Union["TagNode", TextLeaf, CommentLeaf]
Predicate = Union[TagNodeCondition, Callable[["TagNode"], bool]]


def _normalize_attribute_value(value: Optional[str]) -> str:
    if value is None:
        return ""
    return _CONTROL_CHARS.sub(" ", str(value).strip())


def _as_predicate(condition: Predicate) -> Callable[["TagNode"], bool]:
    satisfy = getattr(condition, "satisfy", None)
    if callable(satisfy):
        return satisfy
    if callable(condition):
        return condition
    raise TypeError("Condition must provide satisfy(node) or be callable")


class TagNode:
    """Element of the repaired tree.

    The tag name keeps its original case; ``name`` exposes it lower-cased
    unless the node was classified as foreign markup (e.g. SVG). Attributes
    follow the same rule: keys are unique case-insensitively, the first-seen
    spelling is stored, and HTML-classified nodes store them lower-cased.
    """

    def __init__(
        self,
        name: Optional[str],
        attributes: Optional[Mapping[str, Optional[str]]] = None,
    ) -> None:
        self._name = name
        # normalized key -> (stored key, value)
        self._attributes: Dict[str, Tuple[str, str]] = {}
        self._children: List[ChildNode] = []
        self._parent_ref: Optional["weakref.ReferenceType[TagNode]"] = None
        self._namespace_declarations: Optional[Dict[str, str]] = None
        self._doctype: Optional[DoctypeMarker] = None
        self._foreign_markup_known = False
        self._is_foreign_markup = False
        self._is_copy = False
        self._formed = False

        self.auto_generated = False
        self.pruned = False
        # Raw-text content (script/style) that serializers should emit as CDATA.
        self.cdata_content = False

        if attributes:
            for attr_name, attr_value in attributes.items():
                self.set_attribute(attr_name, attr_value)

    def __repr__(self) -> str:
        return f"<TagNode {self.name!r} children={len(self._children)}>"

    # ------------------------------------------------------------------
    # Name and classification
    # ------------------------------------------------------------------

    @property
    def name(self) -> Optional[str]:
        if self._name is None or self._is_foreign_markup:
            return self._name
        return self._name.lower()

    @property
    def raw_name(self) -> Optional[str]:
        """Tag name exactly as it appeared in the input."""
        return self._name

    @property
    def local_name(self) -> Optional[str]:
        """Tag name without namespace prefix."""
        name = self.name
        if name is not None and ":" in name:
            return name.split(":", 1)[1]
        return name

    @property
    def namespace_prefix(self) -> Optional[str]:
        """Namespace prefix of the tag name, if any."""
        if self._name is not None and ":" in self._name:
            return self._name.split(":", 1)[0]
        return None

    @property
    def foreign_markup_known(self) -> bool:
        """Whether the node has been classified as HTML or foreign markup."""
        return self._foreign_markup_known

    @property
    def is_foreign_markup(self) -> bool:
        return self._is_foreign_markup

    def set_foreign_markup(self, is_foreign: bool) -> bool:
        """Classify the node once; later calls are ignored.

        Classifying as HTML lower-cases the stored attribute names.

        Returns:
            True if the classification was applied by this call
        """
        if self._foreign_markup_known:
            return False
        self._foreign_markup_known = True
        self._is_foreign_markup = bool(is_foreign)
        if not is_foreign:
            self._attributes = {
                key: (key, value) for key, (_, value) in self._attributes.items()
            }
        return True

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------

    @property
    def is_copy(self) -> bool:
        """True for nodes produced by :meth:`make_copy`."""
        return self._is_copy

    @property
    def formed(self) -> bool:
        """True once the balancer has closed this element."""
        return self._formed

    def set_formed(self, formed: bool = True) -> None:
        self._formed = formed

    @property
    def doctype(self) -> Optional[DoctypeMarker]:
        return self._doctype

    @doctype.setter
    def doctype(self, doctype: Optional[DoctypeMarker]) -> None:
        if doctype is not None and not isinstance(doctype, DoctypeMarker):
            raise TypeError("Doctype must be a DoctypeMarker instance")
        self._doctype = doctype

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    @property
    def attributes(self) -> Dict[str, str]:
        """Copy of the attributes in insertion order."""
        return {key: value for key, value in self._attributes.values()}

    def attributes_lower_case(self) -> Dict[str, str]:
        """Copy of the attributes with lower-cased names."""
        return {key: value for key, (_, value) in self._attributes.items()}

    def get_attribute(self, name: Optional[str], default: Optional[str] = None) -> Optional[str]:
        """Get attribute value (case-insensitive) with optional default."""
        if name is None:
            return default
        entry = self._attributes.get(name.strip().lower())
        return entry[1] if entry is not None else default

    def has_attribute(self, name: Optional[str]) -> bool:
        if name is None:
            return False
        return name.strip().lower() in self._attributes

    def set_attribute(self, name: Optional[str], value: Optional[str]) -> None:
        """Add an attribute or override an existing one.

        Blank names are ignored. Values are trimmed and control characters are
        replaced by spaces. Overriding an attribute whose name differs only in
        case keeps the stored spelling.
        """
        if name is None:
            return
        key = str(name).strip()
        if not key:
            return
        if self._foreign_markup_known and not self._is_foreign_markup:
            key = key.lower()
        normalized = key.lower()
        existing = self._attributes.get(normalized)
        stored_key = existing[0] if existing is not None else key
        self._attributes[normalized] = (stored_key, _normalize_attribute_value(value))

    add_attribute = set_attribute

    def remove_attribute(self, name: Optional[str]) -> bool:
        if name is None or not name.strip():
            return False
        return self._attributes.pop(name.strip().lower(), None) is not None

    def set_attributes(self, attributes: Mapping[str, Optional[str]]) -> None:
        """Replace all attributes.

        Until the node is classified, existing spellings are kept for names
        that match case-insensitively.
        """
        previous = self._attributes
        self._attributes = {}
        for key, value in attributes.items():
            if key is None or not str(key).strip():
                continue
            normalized = str(key).strip().lower()
            if not self._foreign_markup_known and normalized in previous:
                key = previous[normalized][0]
            self.set_attribute(key, value)

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def add_namespace_declaration(self, prefix: Optional[str], uri: str) -> None:
        """Declare ``prefix`` (``None`` or ``""`` for the default namespace)."""
        if self._namespace_declarations is None:
            self._namespace_declarations = {}
        self._namespace_declarations[prefix or ""] = uri

    @property
    def namespace_declarations(self) -> Optional[Dict[str, str]]:
        if self._namespace_declarations is None:
            return None
        return dict(self._namespace_declarations)

    def get_namespace_uri_on_path(self, prefix: Optional[str] = None) -> Optional[str]:
        """Resolve ``prefix`` against this node and its ancestors.

        The nearest enclosing declaration wins; ``None`` if nothing declares it.
        """
        key = prefix or ""
        node: Optional[TagNode] = self
        while node is not None:
            declarations = node._namespace_declarations
            if declarations and key in declarations:
                return declarations[key]
            node = node.parent
        return None

    def collect_namespace_prefixes_on_path(self) -> Set[str]:
        """All prefixes declared on this node or any ancestor."""
        prefixes: Set[str] = set()
        node: Optional[TagNode] = self
        while node is not None:
            if node._namespace_declarations:
                prefixes.update(node._namespace_declarations)
            node = node.parent
        return prefixes

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def parent(self) -> Optional["TagNode"]:
        """Parent node, or None for the root or a detached node."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def _set_parent(self, parent: Optional["TagNode"]) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def children(self) -> List[ChildNode]:
        """Snapshot of all children."""
        return list(self._children)

    @property
    def child_tags(self) -> List["TagNode"]:
        """Snapshot of the children that are tag nodes."""
        return [child for child in self._children if isinstance(child, TagNode)]

    @property
    def has_children(self) -> bool:
        return bool(self._children)

    @property
    def text(self) -> str:
        """Concatenated text content of this node and its descendants."""
        parts: List[str] = []
        for child in self._children:
            if isinstance(child, TextLeaf):
                parts.append(child.content)
            elif isinstance(child, TagNode):
                parts.append(child.text)
        return "".join(parts)

    def get_child_index(self, child: ChildNode) -> int:
        """Index of ``child`` (by identity), -1 if it is not a child."""
        for index, current in enumerate(self._children):
            if current is child:
                return index
        return -1

    def _adopt(self, child: ChildNode) -> None:
        """Validate ``child`` and detach it from its current parent."""
        if isinstance(child, TagNode):
            ancestor: Optional[TagNode] = self
            while ancestor is not None:
                if ancestor is child:
                    raise ValueError("A node cannot become a descendant of itself")
                ancestor = ancestor.parent
            child.remove_from_tree()
        elif not isinstance(child, (TextLeaf, CommentLeaf)):
            raise TypeError(
                f"Attempted to add invalid child object to TagNode; "
                f"class={type(child).__name__}"
            )

    def _insert(self, index: int, child: ChildNode) -> None:
        self._children.insert(index, child)
        if isinstance(child, TagNode):
            child._set_parent(self)

    def add_child(self, child: Union[ChildNode, Iterable[ChildNode], None]) -> None:
        """Append a child, or every item of a list/tuple of children."""
        if child is None:
            return
        if isinstance(child, (list, tuple)):
            self.add_children(child)
            return
        self._adopt(child)
        self._insert(len(self._children), child)

    def add_children(self, children: Optional[Iterable[ChildNode]]) -> None:
        if children is None:
            return
        for child in list(children):
            self.add_child(child)

    def insert_child(self, index: int, child: ChildNode) -> None:
        """Insert child at a specific index."""
        if not (0 <= index <= len(self._children)):
            raise IndexError("Child index out of range")
        self._adopt(child)
        self._insert(min(index, len(self._children)), child)

    def _require_child_index(self, sibling: ChildNode) -> int:
        index = self.get_child_index(sibling)
        if index < 0:
            raise ValueError("Reference node is not a child of this node")
        return index

    def _insert_relative(self, sibling: ChildNode, child: ChildNode, offset: int) -> None:
        # Sibling is checked before the child leaves its current tree; the
        # index is looked up again because detaching may shift it.
        self._require_child_index(sibling)
        if sibling is child:
            raise ValueError("A node cannot be inserted relative to itself")
        self._adopt(child)
        self._insert(self._require_child_index(sibling) + offset, child)

    def insert_child_before(self, sibling: ChildNode, child: ChildNode) -> None:
        self._insert_relative(sibling, child, 0)

    def insert_child_after(self, sibling: ChildNode, child: ChildNode) -> None:
        self._insert_relative(sibling, child, 1)

    def remove_child(self, child: ChildNode) -> bool:
        """Remove a child and clear its parent link.

        Returns:
            True if the object was one of the children
        """
        index = self.get_child_index(child)
        if index < 0:
            return False
        del self._children[index]
        if isinstance(child, TagNode):
            child._set_parent(None)
        return True

    def remove_from_tree(self) -> bool:
        """Detach this node from its parent. False for a root node."""
        parent = self.parent
        return parent.remove_child(self) if parent is not None else False

    def remove_all_children(self) -> None:
        for child in self._children:
            if isinstance(child, TagNode):
                child._set_parent(None)
        self._children.clear()

    def replace_children(self, children: Iterable[ChildNode]) -> None:
        """Replace every child with ``children``."""
        new_children = list(children)
        self.remove_all_children()
        self.add_children(new_children)

    def is_empty(self) -> bool:
        """Structural emptiness used by pruning.

        A pruned node is never empty. Otherwise every child must be a pruned
        node, blank text, or a recursively empty node; comments count as
        content.
        """
        if self.pruned:
            return False
        for child in self._children:
            if isinstance(child, TagNode):
                if not (child.pruned or child.is_empty()):
                    return False
            elif isinstance(child, TextLeaf):
                if not child.is_blank:
                    return False
            else:
                return False
        return True

    def make_copy(self) -> "TagNode":
        """Childless copy with the same name and a snapshot of the attributes."""
        copy = TagNode(self._name)
        copy._is_copy = True
        copy._attributes = dict(self._attributes)
        copy._foreign_markup_known = self._foreign_markup_known
        copy._is_foreign_markup = self._is_foreign_markup
        copy.cdata_content = self.cdata_content
        if self._namespace_declarations:
            copy._namespace_declarations = dict(self._namespace_declarations)
        return copy

    def get_path(self) -> str:
        """Get XPath-like path to this node."""
        name = self.name or "*"
        parent = self.parent
        if parent is None:
            return f"/{name}"

        siblings = [child for child in parent.child_tags if child.name == self.name]
        if len(siblings) > 1:
            position = next(
                (i for i, sibling in enumerate(siblings, 1) if sibling is self), 1
            )
            return f"{parent.get_path()}/{name}[{position}]"
        return f"{parent.get_path()}/{name}"

    def get_depth(self) -> int:
        """Get depth of this node in the tree (root = 0)."""
        depth = 0
        parent = self.parent
        while parent is not None:
            depth += 1
            parent = parent.parent
        return depth

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def find_element(self, condition: Predicate, recursive: bool = True) -> Optional["TagNode"]:
        """First tag node (pre-order) satisfying ``condition``."""
        if condition is None:
            return None
        satisfy = _as_predicate(condition)
        return self._find_first(satisfy, recursive)

    def _find_first(
        self, satisfy: Callable[["TagNode"], bool], recursive: bool
    ) -> Optional["TagNode"]:
        for child in self._children:
            if isinstance(child, TagNode):
                if satisfy(child):
                    return child
                if recursive:
                    inner = child._find_first(satisfy, recursive)
                    if inner is not None:
                        return inner
        return None

    def get_element_list(self, condition: Predicate, recursive: bool = True) -> List["TagNode"]:
        """All tag nodes satisfying ``condition`` in pre-order."""
        result: List[TagNode] = []
        if condition is None:
            return result
        self._collect(_as_predicate(condition), recursive, result)
        return result

    def _collect(
        self,
        satisfy: Callable[["TagNode"], bool],
        recursive: bool,
        result: List["TagNode"],
    ) -> None:
        for child in self._children:
            if isinstance(child, TagNode):
                if satisfy(child):
                    result.append(child)
                if recursive:
                    child._collect(satisfy, recursive, result)

    def get_all_elements(self, recursive: bool = True) -> List["TagNode"]:
        return self.get_element_list(MatchAllCondition(), recursive)

    def find_element_by_name(self, name: str, recursive: bool = True) -> Optional["TagNode"]:
        return self.find_element(NameCondition(name), recursive)

    def get_elements_by_name(self, name: str, recursive: bool = True) -> List["TagNode"]:
        return self.get_element_list(NameCondition(name), recursive)

    def find_element_having_attribute(
        self, attribute: str, recursive: bool = True
    ) -> Optional["TagNode"]:
        return self.find_element(HasAttributeCondition(attribute), recursive)

    def get_elements_having_attribute(
        self, attribute: str, recursive: bool = True
    ) -> List["TagNode"]:
        return self.get_element_list(HasAttributeCondition(attribute), recursive)

    def find_element_by_attribute_value(
        self,
        attribute: str,
        value: str,
        recursive: bool = True,
        case_sensitive: bool = False,
    ) -> Optional["TagNode"]:
        return self.find_element(
            AttributeValueCondition(attribute, value, case_sensitive), recursive
        )

    def get_elements_by_attribute_value(
        self,
        attribute: str,
        value: str,
        recursive: bool = True,
        case_sensitive: bool = False,
    ) -> List["TagNode"]:
        return self.get_element_list(
            AttributeValueCondition(attribute, value, case_sensitive), recursive
        )

    # ------------------------------------------------------------------
    # Traversal and export
    # ------------------------------------------------------------------

    def traverse(self, visitor: Any) -> bool:
        """Visit this subtree depth-first; see :func:`traversal.traverse`."""
        from robust_html_balancer.tree.traversal import traverse

        return traverse(self, visitor)

    def to_dict(self) -> Dict[str, Any]:
        """Convert node and subtree to dictionary representation."""
        result: Dict[str, Any] = {
            "name": self.name,
            "attributes": self.attributes,
        }
        if self.auto_generated:
            result["auto_generated"] = True
        if self._is_foreign_markup:
            result["foreign"] = True
        if self._namespace_declarations:
            result["namespaces"] = dict(self._namespace_declarations)
        if self._doctype is not None:
            result["doctype"] = self._doctype.content
        if self._children:
            result["children"] = [child.to_dict() for child in self._children]
        return result
