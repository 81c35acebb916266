"""Tests for the TagNode tree model."""

import gc
from typing import List

import pytest

from robust_html_balancer.tree import (
    CommentLeaf,
    DoctypeMarker,
    NameCondition,
    TagNode,
    TextLeaf,
)


def _tree() -> TagNode:
    """html > (div#a > (span, p.x), p.y)"""
    root = TagNode("html")
    div = TagNode("div", {"id": "a"})
    span = TagNode("span")
    inner_p = TagNode("p", {"class": "x"})
    outer_p = TagNode("p", {"class": "y"})
    div.add_child([span, inner_p])
    root.add_child(div)
    root.add_child(outer_p)
    return root


class TestNames:
    """Test name handling and classification."""

    def test_name_lower_cased_unless_foreign(self) -> None:
        html_node = TagNode("DIV")
        svg_node = TagNode("linearGradient")
        svg_node.set_foreign_markup(True)

        assert html_node.name == "div"
        assert html_node.raw_name == "DIV"
        assert svg_node.name == "linearGradient"

    def test_prefix_and_local_name(self) -> None:
        node = TagNode("o:p")

        assert node.namespace_prefix == "o"
        assert node.local_name == "p"
        assert TagNode("p").namespace_prefix is None

    def test_classification_is_sticky(self) -> None:
        node = TagNode("svg")

        assert node.foreign_markup_known is False
        assert node.set_foreign_markup(True) is True
        assert node.set_foreign_markup(False) is False
        assert node.is_foreign_markup is True

    def test_html_classification_lower_cases_attribute_names(self) -> None:
        node = TagNode("div", {"onClick": "go()"})

        node.set_foreign_markup(False)

        assert node.attributes == {"onclick": "go()"}
        node.set_attribute("DATA-X", "1")
        assert "data-x" in node.attributes

    def test_foreign_classification_keeps_attribute_case(self) -> None:
        node = TagNode("svg", {"viewBox": "0 0 1 1"})

        node.set_foreign_markup(True)

        assert node.attributes == {"viewBox": "0 0 1 1"}
        assert node.get_attribute("viewbox") == "0 0 1 1"


class TestAttributes:
    """Test the case-insensitive attribute map."""

    def test_first_seen_casing_kept_on_overwrite(self) -> None:
        """Class=x then class=y keeps the key Class with value y."""
        node = TagNode("div")
        node.set_attribute("Class", "x")
        node.set_attribute("class", "y")

        assert node.attributes == {"Class": "y"}
        assert node.get_attribute("CLASS") == "y"
        assert node.attributes_lower_case() == {"class": "y"}

    def test_values_trimmed_and_control_characters_replaced(self) -> None:
        node = TagNode("a")
        node.set_attribute(" href ", "  /a\tb\nc  ")
        node.add_attribute("title", None)

        assert node.attributes == {"href": "/a b c", "title": ""}

    def test_blank_names_ignored(self) -> None:
        node = TagNode("a")
        node.set_attribute("", "x")
        node.set_attribute("   ", "x")
        node.set_attribute(None, "x")

        assert node.attributes == {}

    def test_has_and_remove(self) -> None:
        node = TagNode("a", {"Href": "/"})

        assert node.has_attribute("href")
        assert node.has_attribute(None) is False
        assert node.remove_attribute("HREF") is True
        assert node.remove_attribute("href") is False
        assert node.get_attribute("href", "default") == "default"

    def test_set_attributes_replaces_all_and_keeps_casing(self) -> None:
        node = TagNode("div", {"Id": "a", "title": "t"})

        node.set_attributes({"id": "b", "lang": "en"})

        assert node.attributes == {"Id": "b", "lang": "en"}

    def test_attribute_order_is_insertion_order(self) -> None:
        node = TagNode("img", {"src": "a.png", "alt": "", "width": "1"})

        assert list(node.attributes) == ["src", "alt", "width"]


class TestNamespaces:
    """Test namespace declarations and scoped resolution."""

    def test_nearest_declaration_wins(self) -> None:
        root = TagNode("html")
        outer = TagNode("outer")
        inner = TagNode("inner")
        root.add_child(outer)
        outer.add_child(inner)
        outer.add_namespace_declaration("p", "urn:A")
        inner.add_namespace_declaration("p", "urn:B")

        assert inner.get_namespace_uri_on_path("p") == "urn:B"
        assert outer.get_namespace_uri_on_path("p") == "urn:A"
        assert root.get_namespace_uri_on_path("p") is None

    def test_default_namespace(self) -> None:
        root = TagNode("svg")
        child = TagNode("rect")
        root.add_child(child)
        root.add_namespace_declaration(None, "http://www.w3.org/2000/svg")

        assert child.get_namespace_uri_on_path() == "http://www.w3.org/2000/svg"
        assert child.get_namespace_uri_on_path("") == "http://www.w3.org/2000/svg"

    def test_collect_prefixes(self) -> None:
        root = TagNode("html")
        child = TagNode("x:a")
        root.add_child(child)
        root.add_namespace_declaration("x", "urn:x")
        child.add_namespace_declaration("y", "urn:y")

        assert child.collect_namespace_prefixes_on_path() == {"x", "y"}
        assert child.namespace_declarations == {"y": "urn:y"}
        assert TagNode("b").namespace_declarations is None


class TestStructure:
    """Test child management and parent consistency."""

    def test_add_child_sets_parent(self) -> None:
        parent = TagNode("div")
        child = TagNode("span")

        parent.add_child(child)

        assert child.parent is parent
        assert parent.children == [child]
        assert parent.has_children

    def test_add_child_accepts_lists_and_ignores_none(self) -> None:
        parent = TagNode("div")
        text = TextLeaf("a")
        comment = CommentLeaf("c")

        parent.add_child([text, TagNode("b")])
        parent.add_child((comment,))
        parent.add_child(None)

        assert len(parent.children) == 3
        assert parent.children[0] is text
        assert parent.children[2] is comment

    @pytest.mark.parametrize("bad_child", ["text", 42, object(), DoctypeMarker("html")])
    def test_add_invalid_child_raises_type_error(self, bad_child: object) -> None:
        parent = TagNode("div")

        with pytest.raises(TypeError, match="Attempted to add invalid child object"):
            parent.add_child(bad_child)
        assert parent.children == []

    def test_adding_node_detaches_from_previous_parent(self) -> None:
        first = TagNode("div")
        second = TagNode("div")
        child = TagNode("span")
        first.add_child(child)

        second.add_child(child)

        assert first.children == []
        assert child.parent is second

    def test_cycle_rejected(self) -> None:
        outer = TagNode("div")
        inner = TagNode("span")
        outer.add_child(inner)

        with pytest.raises(ValueError, match="descendant of itself"):
            inner.add_child(outer)
        with pytest.raises(ValueError):
            outer.add_child(outer)

    def test_insert_child_positions(self) -> None:
        parent = TagNode("ul")
        first, second, third = TagNode("li"), TagNode("li"), TagNode("li")
        parent.add_child(third)

        parent.insert_child(0, first)
        parent.insert_child_after(first, second)

        assert parent.children == [first, second, third]

    def test_insert_before(self) -> None:
        parent = TagNode("p")
        text = TextLeaf("world")
        parent.add_child(text)
        bold = TagNode("b")

        parent.insert_child_before(text, bold)

        assert parent.children == [bold, text]
        assert bold.parent is parent

    def test_insert_out_of_range(self) -> None:
        with pytest.raises(IndexError, match="Child index out of range"):
            TagNode("p").insert_child(1, TagNode("b"))

    def test_insert_relative_to_non_child(self) -> None:
        parent = TagNode("p")
        stranger = TagNode("b")

        with pytest.raises(ValueError, match="Reference node is not a child"):
            parent.insert_child_before(stranger, TagNode("i"))
        with pytest.raises(ValueError, match="Reference node is not a child"):
            parent.insert_child_after(TextLeaf("x"), TagNode("i"))

    def test_failed_relative_insert_leaves_child_in_place(self) -> None:
        owner = TagNode("div")
        moving = TagNode("b")
        owner.add_child(moving)
        target = TagNode("p")

        with pytest.raises(ValueError, match="Reference node is not a child"):
            target.insert_child_before(TagNode("span"), moving)

        assert moving.parent is owner
        assert owner.get_child_index(moving) == 0
        assert target.children == []

    @pytest.mark.parametrize(
        "method, expected",
        [("insert_child_before", ["b", "a", "c"]), ("insert_child_after", ["a", "c", "b"])],
    )
    def test_relative_insert_moves_existing_child(self, method: str, expected: List[str]) -> None:
        """An existing child is moved, not duplicated."""
        parent = TagNode("div")
        first, moving, last = TagNode("a"), TagNode("b"), TagNode("c")
        parent.add_child([first, moving, last])

        getattr(parent, method)(last if method == "insert_child_after" else first, moving)

        assert [child.name for child in parent.children] == expected
        assert moving.parent is parent

    def test_insert_relative_to_itself(self) -> None:
        parent = TagNode("div")
        child = TagNode("b")
        parent.add_child(child)

        with pytest.raises(ValueError, match="relative to itself"):
            parent.insert_child_after(child, child)

        assert child.parent is parent

    def test_remove_child_is_identity_based(self) -> None:
        """Equal-looking leaves are distinct children."""
        parent = TagNode("p")
        first, second = TextLeaf("same"), TextLeaf("same")
        parent.add_child([first, second])

        assert parent.remove_child(second) is True
        assert parent.children == [first]
        assert parent.remove_child(second) is False

    def test_remove_from_tree(self) -> None:
        parent = TagNode("div")
        child = TagNode("span")
        parent.add_child(child)

        assert child.remove_from_tree() is True
        assert child.parent is None
        assert parent.children == []
        assert parent.remove_from_tree() is False

    def test_remove_all_and_replace_children(self) -> None:
        parent = TagNode("div")
        old = TagNode("span")
        parent.add_child(old)
        new = TagNode("em")

        parent.replace_children([new, TextLeaf("x")])

        assert old.parent is None
        assert new.parent is parent
        assert len(parent.children) == 2

        parent.remove_all_children()
        assert parent.children == []
        assert new.parent is None

    def test_children_is_a_snapshot(self) -> None:
        parent = TagNode("div")
        snapshot = parent.children
        snapshot.append(TagNode("x"))

        assert parent.children == []

    def test_parent_is_weak(self) -> None:
        parent = TagNode("div")
        child = TagNode("span")
        parent.add_child(child)

        del parent
        gc.collect()

        assert child.parent is None

    def test_text_concatenates_descendants(self) -> None:
        root = TagNode("p")
        bold = TagNode("b")
        bold.add_child(TextLeaf("bold"))
        root.add_child([TextLeaf("a "), bold, CommentLeaf("ignored"), TextLeaf(" z")])

        assert root.text == "a bold z"

    def test_path_and_depth(self) -> None:
        root = _tree()
        inner_p = root.find_element_by_attribute_value("class", "x")
        outer_p = root.find_element_by_attribute_value("class", "y")

        assert root.get_path() == "/html"
        assert inner_p.get_path() == "/html/div/p"
        assert outer_p.get_path() == "/html/p"
        assert inner_p.get_depth() == 2
        assert root.get_depth() == 0


class TestEmptiness:
    """Test the structural emptiness rule."""

    def test_blank_text_is_empty(self) -> None:
        node = TagNode("span")
        node.add_child(TextLeaf("  \n "))

        assert node.is_empty()

    def test_comment_makes_non_empty(self) -> None:
        """A node with only a comment child is not empty."""
        node = TagNode("span")
        node.add_child(CommentLeaf("[if IE]"))

        assert not node.is_empty()

    def test_recursively_empty_children(self) -> None:
        node = TagNode("div")
        inner = TagNode("span")
        inner.add_child(TextLeaf(" "))
        node.add_child(inner)

        assert node.is_empty()
        inner.add_child(TextLeaf("x"))
        assert not node.is_empty()

    def test_pruned_node_is_not_empty_but_counts_as_empty_child(self) -> None:
        node = TagNode("div")
        child = TagNode("span")
        child.add_child(TextLeaf("content"))
        node.add_child(child)

        child.pruned = True

        assert not child.is_empty()
        assert node.is_empty()


class TestCopy:
    """Test make_copy semantics."""

    def test_copy_is_childless_snapshot(self) -> None:
        original = TagNode("B", {"Class": "x"})
        original.set_foreign_markup(False)
        original.add_child(TextLeaf("content"))

        copy = original.make_copy()
        original.set_attribute("id", "changed")

        assert copy.is_copy is True
        assert original.is_copy is False
        assert copy.raw_name == "B"
        assert copy.children == []
        assert copy.attributes == {"class": "x"}
        assert copy.foreign_markup_known is True
        assert copy.parent is None
        assert copy.auto_generated is False


class TestSearch:
    """Test predicate search over tag nodes."""

    def test_find_element_pre_order(self) -> None:
        root = _tree()

        found = root.find_element_by_name("p")

        assert found.get_attribute("class") == "x"

    def test_find_element_non_recursive(self) -> None:
        root = _tree()

        found = root.find_element_by_name("p", recursive=False)

        assert found.get_attribute("class") == "y"
        assert root.find_element_by_name("span", recursive=False) is None

    def test_get_element_list_pre_order(self) -> None:
        root = _tree()

        names = [node.name for node in root.get_all_elements()]

        assert names == ["div", "span", "p", "p"]
        assert len(root.get_all_elements(recursive=False)) == 2

    def test_attribute_searches(self) -> None:
        root = _tree()

        assert root.find_element_having_attribute("ID").name == "div"
        assert len(root.get_elements_having_attribute("class")) == 2
        assert root.find_element_by_attribute_value("class", "X").get_attribute("class") == "x"
        assert root.find_element_by_attribute_value("class", "X", case_sensitive=True) is None
        assert len(root.get_elements_by_attribute_value("class", "y")) == 1
        assert len(root.get_elements_by_name("P")) == 2

    def test_leaves_are_never_matched(self) -> None:
        root = TagNode("p")
        root.add_child(TextLeaf("p"))

        assert root.get_element_list(lambda node: True) == []

    def test_callable_and_condition_objects(self) -> None:
        root = _tree()

        assert root.find_element(NameCondition("span")).name == "span"
        assert root.find_element(lambda node: node.name == "span").name == "span"
        assert root.find_element(None) is None
        with pytest.raises(TypeError, match="Condition must provide satisfy"):
            root.find_element("span")


class TestExport:
    """Test dictionary export."""

    def test_to_dict(self) -> None:
        root = TagNode("html")
        root.doctype = DoctypeMarker("html")
        child = TagNode("svg")
        child.set_foreign_markup(True)
        child.auto_generated = True
        child.add_namespace_declaration("", "http://www.w3.org/2000/svg")
        root.add_child([child, TextLeaf("t"), CommentLeaf("c")])

        data = root.to_dict()

        assert data["name"] == "html"
        assert data["doctype"] == "html"
        assert data["children"][0] == {
            "name": "svg",
            "attributes": {},
            "auto_generated": True,
            "foreign": True,
            "namespaces": {"": "http://www.w3.org/2000/svg"},
        }
        assert data["children"][1] == {"type": "text", "content": "t"}
        assert data["children"][2] == {"type": "comment", "content": "c"}

    def test_doctype_must_be_marker(self) -> None:
        with pytest.raises(TypeError, match="Doctype must be a DoctypeMarker"):
            TagNode("html").doctype = "html"  # type: ignore[assignment]
