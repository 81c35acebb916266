"""Turn a tag tree back into the token stream that produces it.

The output feeds external serializers and can be balanced again: feeding
the tokens of a balanced tree to a new balancer yields the same structure.
"""

from typing import Any, Iterator, List, Optional

from robust_html_balancer.tokenization import Token

from .content_model import ContentModelRegistry, default_registry
from .leaves import CommentLeaf, TextLeaf
from .node import TagNode


class _CloseMarker:
    __slots__ = ("node",)

    def __init__(self, node: TagNode) -> None:
        self.node = node


def iter_tokens(
    node: TagNode,
    include_self: bool = True,
    registry: Optional[ContentModelRegistry] = None,
) -> Iterator[Token]:
    """Yield tokens for ``node`` and its subtree in document order.

    Args:
        node: Subtree root (usually the document root)
        include_self: Emit open and close tags for ``node`` itself
        registry: Content-model rules deciding which tags are void

    Yields:
        The doctype (if any) first, then tags, text and comments
    """
    registry = registry if registry is not None else default_registry()
    if node.doctype is not None:
        yield Token.doctype(node.doctype.content)

    stack: List[Any] = [node] if include_self else list(reversed(node.children))
    while stack:
        item = stack.pop()
        if isinstance(item, _CloseMarker):
            yield Token.close_tag(item.node.raw_name)
        elif isinstance(item, TextLeaf):
            yield Token.text(item.content)
        elif isinstance(item, CommentLeaf):
            yield Token.comment(item.content)
        else:
            children = item.children
            attributes = list(item.attributes.items())
            if item.is_foreign_markup and not children:
                yield Token.open_tag(item.raw_name, attributes, self_closing=True)
                continue
            yield Token.open_tag(item.raw_name, attributes)
            # Void tags have no close tag.
            if item.is_foreign_markup or not registry.is_empty_tag(item.name):
                stack.append(_CloseMarker(item))
            stack.extend(reversed(children))
