"""Token types consumed by the tag balancer.

The lexical tokenizer lives outside this package; these dataclasses are the
contract between it and the balancer.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

AttributeInput = Union[Mapping[str, Optional[str]], Iterable[Tuple[str, Optional[str]]]]


class TokenType(Enum):
    """Markup token kinds."""

    OPEN_TAG = auto()    # <name attr="value">
    CLOSE_TAG = auto()   # </name>
    TEXT = auto()        # Character content between tags
    COMMENT = auto()     # <!-- ... -->
    DOCTYPE = auto()     # <!DOCTYPE ...>


@dataclass(frozen=True)
class TokenPosition:
    """Position of a token in the source document."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class Token:
    """A single markup token.

    ``value`` is the tag name for tag tokens and the content for text, comment
    and doctype tokens. A tag name of ``None`` is allowed and produces a
    null-named node that callers can filter later.
    """

    type: TokenType
    value: Optional[str] = None
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    self_closing: bool = False
    position: Optional[TokenPosition] = None

    def __post_init__(self) -> None:
        """Validate the token kind and normalise attributes to ordered pairs."""
        if not isinstance(self.type, TokenType):
            raise TypeError("Token type must be a TokenType member")
        if isinstance(self.attributes, Mapping):
            pairs = list(self.attributes.items())
        else:
            pairs = list(self.attributes)
        self.attributes = [
            (name, "" if value is None else value) for name, value in pairs
        ]
        if self.type is not TokenType.OPEN_TAG and (self.attributes or self.self_closing):
            raise ValueError("Only open-tag tokens carry attributes or self-closing flags")

    @property
    def is_tag(self) -> bool:
        return self.type in (TokenType.OPEN_TAG, TokenType.CLOSE_TAG)

    @property
    def content(self) -> str:
        """Text payload of a content token (never ``None``)."""
        return self.value or ""

    @classmethod
    def open_tag(
        cls,
        name: Optional[str],
        attributes: Optional[AttributeInput] = None,
        self_closing: bool = False,
        position: Optional[TokenPosition] = None,
    ) -> "Token":
        return cls(
            TokenType.OPEN_TAG,
            name,
            attributes=attributes if attributes is not None else [],
            self_closing=self_closing,
            position=position,
        )

    @classmethod
    def close_tag(cls, name: Optional[str], position: Optional[TokenPosition] = None) -> "Token":
        return cls(TokenType.CLOSE_TAG, name, position=position)

    @classmethod
    def text(cls, content: str, position: Optional[TokenPosition] = None) -> "Token":
        return cls(TokenType.TEXT, content, position=position)

    @classmethod
    def comment(cls, content: str, position: Optional[TokenPosition] = None) -> "Token":
        return cls(TokenType.COMMENT, content, position=position)

    @classmethod
    def doctype(cls, content: str, position: Optional[TokenPosition] = None) -> "Token":
        return cls(TokenType.DOCTYPE, content, position=position)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type.name, "value": self.value}
        if self.attributes:
            result["attributes"] = [list(pair) for pair in self.attributes]
        if self.self_closing:
            result["self_closing"] = True
        if self.position is not None:
            result["position"] = self.position.to_dict()
        return result
