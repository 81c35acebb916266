"""Composable predicates over tag nodes.

Conditions drive the search methods of ``TagNode`` and the caller-supplied
rules of the pruning pass. They combine with ``&``, ``|`` and ``~``.
"""

from typing import Any, Iterable, Optional


class TagNodeCondition:
    """Base class: does a tag node satisfy this condition?"""

    def satisfy(self, node: Any) -> bool:
        raise NotImplementedError

    def __call__(self, node: Any) -> bool:
        return self.satisfy(node)

    def __and__(self, other: "TagNodeCondition") -> "TagNodeCondition":
        return AndCondition(self, other)

    def __or__(self, other: "TagNodeCondition") -> "TagNodeCondition":
        return OrCondition(self, other)

    def __invert__(self) -> "TagNodeCondition":
        return NotCondition(self)


class MatchAllCondition(TagNodeCondition):
    """Satisfied by every node."""

    def satisfy(self, node: Any) -> bool:
        return True

    def __repr__(self) -> str:
        return "MatchAllCondition()"


class NameCondition(TagNodeCondition):
    """Tag name equals ``name`` (case-insensitive)."""

    def __init__(self, name: Optional[str]) -> None:
        self.name = name

    def satisfy(self, node: Any) -> bool:
        node_name = node.name
        if node_name is None or self.name is None:
            return node_name is None and self.name is None
        return node_name.lower() == self.name.lower()

    def __repr__(self) -> str:
        return f"NameCondition({self.name!r})"


class NameInCondition(TagNodeCondition):
    """Tag name is one of ``names`` (case-insensitive)."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = frozenset(name.lower() for name in names)

    def satisfy(self, node: Any) -> bool:
        return node.name is not None and node.name.lower() in self.names

    def __repr__(self) -> str:
        return f"NameInCondition({sorted(self.names)!r})"


class HasAttributeCondition(TagNodeCondition):
    """Node carries the attribute ``attribute``."""

    def __init__(self, attribute: str) -> None:
        self.attribute = attribute

    def satisfy(self, node: Any) -> bool:
        return node.has_attribute(self.attribute)

    def __repr__(self) -> str:
        return f"HasAttributeCondition({self.attribute!r})"


class AttributeValueCondition(TagNodeCondition):
    """Attribute ``attribute`` has value ``value``.

    The attribute name always matches case-insensitively; ``case_sensitive``
    controls the comparison of the value.
    """

    def __init__(self, attribute: str, value: Optional[str], case_sensitive: bool = False) -> None:
        self.attribute = attribute
        self.value = value
        self.case_sensitive = case_sensitive

    def satisfy(self, node: Any) -> bool:
        if self.attribute is None or self.value is None:
            return False
        actual = node.get_attribute(self.attribute)
        if actual is None:
            return False
        if self.case_sensitive:
            return actual == self.value
        return actual.lower() == self.value.lower()

    def __repr__(self) -> str:
        return (
            f"AttributeValueCondition({self.attribute!r}, {self.value!r}, "
            f"case_sensitive={self.case_sensitive})"
        )


class AutoGeneratedCondition(TagNodeCondition):
    """Node was synthesized by the balancer rather than read from input."""

    def satisfy(self, node: Any) -> bool:
        return bool(node.auto_generated)

    def __repr__(self) -> str:
        return "AutoGeneratedCondition()"


class AndCondition(TagNodeCondition):
    def __init__(self, *conditions: TagNodeCondition) -> None:
        self.conditions = conditions

    def satisfy(self, node: Any) -> bool:
        return all(condition.satisfy(node) for condition in self.conditions)

    def __repr__(self) -> str:
        return f"AndCondition{self.conditions!r}"


class OrCondition(TagNodeCondition):
    def __init__(self, *conditions: TagNodeCondition) -> None:
        self.conditions = conditions

    def satisfy(self, node: Any) -> bool:
        return any(condition.satisfy(node) for condition in self.conditions)

    def __repr__(self) -> str:
        return f"OrCondition{self.conditions!r}"


class NotCondition(TagNodeCondition):
    def __init__(self, condition: TagNodeCondition) -> None:
        self.condition = condition

    def satisfy(self, node: Any) -> bool:
        return not self.condition.satisfy(node)

    def __repr__(self) -> str:
        return f"NotCondition({self.condition!r})"
