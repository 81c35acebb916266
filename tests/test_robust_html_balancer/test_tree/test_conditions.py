"""Tests for composable tag node conditions."""

from robust_html_balancer.tree import (
    AttributeValueCondition,
    AutoGeneratedCondition,
    HasAttributeCondition,
    MatchAllCondition,
    NameCondition,
    NameInCondition,
    TagNode,
)


class TestBasicConditions:
    """Test the individual condition types."""

    def test_match_all(self) -> None:
        assert MatchAllCondition().satisfy(TagNode("anything"))

    def test_name_condition_case_insensitive(self) -> None:
        condition = NameCondition("DIV")

        assert condition.satisfy(TagNode("div"))
        assert not condition.satisfy(TagNode("span"))

    def test_name_condition_with_null_names(self) -> None:
        assert NameCondition(None).satisfy(TagNode(None))
        assert not NameCondition("div").satisfy(TagNode(None))
        assert not NameCondition(None).satisfy(TagNode("div"))

    def test_name_in_condition(self) -> None:
        condition = NameInCondition(["Script", "style"])

        assert condition.satisfy(TagNode("script"))
        assert condition.satisfy(TagNode("STYLE"))
        assert not condition.satisfy(TagNode("p"))
        assert not condition.satisfy(TagNode(None))

    def test_has_attribute(self) -> None:
        assert HasAttributeCondition("ID").satisfy(TagNode("p", {"id": "x"}))
        assert not HasAttributeCondition("id").satisfy(TagNode("p"))

    def test_attribute_value_case_sensitivity(self) -> None:
        node = TagNode("p", {"class": "Note"})

        assert AttributeValueCondition("CLASS", "note").satisfy(node)
        assert not AttributeValueCondition("class", "note", case_sensitive=True).satisfy(node)
        assert AttributeValueCondition("class", "Note", case_sensitive=True).satisfy(node)
        assert not AttributeValueCondition("class", None).satisfy(node)
        assert not AttributeValueCondition("id", "Note").satisfy(node)

    def test_auto_generated(self) -> None:
        node = TagNode("b")
        condition = AutoGeneratedCondition()

        assert not condition.satisfy(node)
        node.auto_generated = True
        assert condition(node)


class TestComposition:
    """Test &, | and ~ composition."""

    def test_and_or_not(self) -> None:
        bold_with_id = TagNode("b", {"id": "x"})
        bold = TagNode("b")
        italic = TagNode("i")

        both = NameCondition("b") & HasAttributeCondition("id")
        either = NameCondition("b") | NameCondition("i")
        not_bold = ~NameCondition("b")

        assert both.satisfy(bold_with_id)
        assert not both.satisfy(bold)
        assert either.satisfy(italic)
        assert either.satisfy(bold)
        assert not_bold.satisfy(italic)
        assert not not_bold.satisfy(bold)

    def test_repr_is_readable(self) -> None:
        condition = NameCondition("b") & ~HasAttributeCondition("id")

        assert repr(condition) == (
            "AndCondition(NameCondition('b'), NotCondition(HasAttributeCondition('id')))"
        )
