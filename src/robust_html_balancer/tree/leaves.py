"""Content leaves stored in a tag node's children.

Leaves are immutable values without a parent reference. They compare by
identity so that removing one leaf never removes an equal-looking sibling.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True, eq=False)
class TextLeaf:
    """Character content."""

    content: str = ""

    @property
    def is_blank(self) -> bool:
        """True when the content is empty or whitespace only."""
        return not self.content.strip()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "content": self.content}


@dataclass(frozen=True, eq=False)
class CommentLeaf:
    """Markup comment. Comments always count as meaningful content."""

    content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "comment", "content": self.content}


@dataclass(frozen=True, eq=False)
class DoctypeMarker:
    """Document type declaration, recorded once on the document root."""

    content: str = ""

    @property
    def root_name(self) -> str:
        """First word of the declaration, e.g. ``html``."""
        parts = self.content.split()
        if parts and parts[0].upper() == "DOCTYPE":
            parts = parts[1:]
        return parts[0].lower() if parts else ""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "doctype", "content": self.content}
