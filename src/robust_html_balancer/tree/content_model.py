"""Content-model registry: static nesting rules per tag name.

The balancer consults the registry for every tag it sees. The registry is
built once and never mutated afterwards, so one instance can be shared by
balancers on any number of threads.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

EMPTY_TAGS = frozenset({
    "area", "base", "basefont", "br", "col", "embed", "frame", "hr", "img",
    "input", "keygen", "link", "meta", "param", "source", "track", "wbr",
})

# Formatting elements that are closed and reopened around interruptions.
FORMATTING_TAGS = frozenset({
    "b", "big", "code", "em", "font", "i", "s", "small", "strike",
    "strong", "sub", "sup", "tt", "u",
})

# Block elements that end an open paragraph and the formatting directly above it.
BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "center", "dir", "div",
    "dl", "fieldset", "figure", "footer", "form", "header", "hr", "main",
    "menu", "nav", "ol", "p", "pre", "section", "table", "ul",
})

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

FOREIGN_ROOT_TAGS = frozenset({"svg", "math"})

RAW_TEXT_TAGS = frozenset({"script", "style"})


@dataclass(frozen=True)
class ContentModel:
    """Nesting rules for one tag name."""

    name: str
    empty: bool = False
    # Open ancestors implicitly closed when this tag opens.
    closes: FrozenSet[str] = frozenset()
    # Tags after whose closing this element is reopened.
    continue_after: FrozenSet[str] = frozenset()
    foreign: bool = False
    raw_text: bool = False
    known: bool = True


def _permissive(name: str) -> ContentModel:
    return ContentModel(name=name, known=False)


class ContentModelRegistry:
    """Read-only lookup of content models by tag name (case-insensitive)."""

    def __init__(self, models: Iterable[ContentModel]) -> None:
        table: Dict[str, ContentModel] = {}
        for model in models:
            table[model.name.lower()] = model
        self._models: Mapping[str, ContentModel] = MappingProxyType(table)

        reverse: Dict[str, set] = {}
        for model in table.values():
            for closed in model.continue_after:
                reverse.setdefault(closed.lower(), set()).add(model.name.lower())
        self._continuations: Mapping[str, FrozenSet[str]] = MappingProxyType(
            {closed: frozenset(names) for closed, names in reverse.items()}
        )

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._models

    def __len__(self) -> int:
        return len(self._models)

    def get(self, name: Optional[str]) -> ContentModel:
        """Content model for ``name``; unknown names get a permissive default."""
        if name is None:
            return _permissive("")
        model = self._models.get(name.lower())
        return model if model is not None else _permissive(name.lower())

    def is_known_tag(self, name: Optional[str]) -> bool:
        return name is not None and name.lower() in self._models

    def is_empty_tag(self, name: Optional[str]) -> bool:
        return self.get(name).empty

    def closes_on_open_of(self, opened: Optional[str]) -> FrozenSet[str]:
        """Ancestor names implicitly closed when ``opened`` opens."""
        return self.get(opened).closes

    def continues_after(self, closed: Optional[str]) -> FrozenSet[str]:
        """Names that are reopened after ``closed`` closes."""
        if closed is None:
            return frozenset()
        return self._continuations.get(closed.lower(), frozenset())

    def is_continuable(self, name: Optional[str], after: Optional[str]) -> bool:
        """Whether ``name`` is reopened when it is interrupted by ``after``."""
        if name is None or after is None:
            return False
        return after.lower() in self.get(name).continue_after

    def is_foreign_root(self, name: Optional[str]) -> bool:
        return self.get(name).foreign

    def is_raw_text(self, name: Optional[str]) -> bool:
        return self.get(name).raw_text


def _html_models() -> Iterable[ContentModel]:
    for name in EMPTY_TAGS - {"hr"}:
        yield ContentModel(name=name, empty=True)
    yield ContentModel(name="hr", empty=True, closes=frozenset({"p"}))

    # Table cells and rows close formatting without carrying it over.
    interrupters = (
        FORMATTING_TAGS | BLOCK_TAGS | HEADING_TAGS | frozenset({"li", "dt", "dd"})
    ) - {"hr"}
    for name in FORMATTING_TAGS:
        yield ContentModel(name=name, continue_after=interrupters - {name})

    for name in BLOCK_TAGS - {"hr"}:
        yield ContentModel(name=name, closes=frozenset({"p"}) | FORMATTING_TAGS)
    for name in HEADING_TAGS:
        yield ContentModel(
            name=name, closes=frozenset({"p"}) | HEADING_TAGS | FORMATTING_TAGS
        )

    yield ContentModel(name="li", closes=frozenset({"li", "p"}) | FORMATTING_TAGS)
    for name in ("dt", "dd"):
        yield ContentModel(name=name, closes=frozenset({"dt", "dd", "p"}) | FORMATTING_TAGS)
    for name in ("td", "th"):
        yield ContentModel(name=name, closes=frozenset({"td", "th"}) | FORMATTING_TAGS)
    yield ContentModel(name="tr", closes=frozenset({"tr", "td", "th"}) | FORMATTING_TAGS)
    for name in ("thead", "tbody", "tfoot"):
        yield ContentModel(
            name=name,
            closes=frozenset({"thead", "tbody", "tfoot", "tr", "td", "th", "caption"}),
        )
    yield ContentModel(name="caption", closes=frozenset({"p"}))
    yield ContentModel(name="option", closes=frozenset({"option"}))
    yield ContentModel(name="optgroup", closes=frozenset({"option", "optgroup"}))
    yield ContentModel(name="a", closes=frozenset({"a"}))

    yield ContentModel(name="html")
    yield ContentModel(name="head")
    yield ContentModel(name="body", closes=frozenset({"head"}))
    yield ContentModel(name="title")
    for name in ("span", "label", "select", "textarea", "iframe", "object",
                 "canvas", "video", "audio", "nobr", "q", "abbr", "cite"):
        yield ContentModel(name=name)

    for name in RAW_TEXT_TAGS:
        yield ContentModel(name=name, raw_text=True)
    for name in FOREIGN_ROOT_TAGS:
        yield ContentModel(name=name, foreign=True)


_DEFAULT_REGISTRY = ContentModelRegistry(_html_models())


def default_registry() -> ContentModelRegistry:
    """The process-wide HTML registry (built once at import)."""
    return _DEFAULT_REGISTRY
