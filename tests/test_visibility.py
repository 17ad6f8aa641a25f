"""Tests for include/exclude rules."""

import pytest
from html2md.conversion import TagVisibilityFilter, parse_html
from html2md.conversion.visibility import is_tag_name_rule
from html2md.errors import ParseFailure

HTML = """
<body>
  <article id="main"><p>kept</p><div class="comments">noise</div></article>
  <aside>side</aside>
</body>
"""


class TestTagNameRules:
    """Tests for rule classification."""

    @pytest.mark.parametrize("rule", ["article", "h1", "my-widget", " aside "])
    def test_tag_names(self, rule):
        """Test bare element names are tag-name rules."""
        assert is_tag_name_rule(rule)

    @pytest.mark.parametrize("rule", ["div.comments", "#main", "body > h1", "article p"])
    def test_selectors(self, rule):
        """Test anything else is treated as a selector."""
        assert not is_tag_name_rule(rule)


class TestTagVisibilityFilter:
    """Tests for TagVisibilityFilter."""

    def test_no_rules(self):
        """Test nothing is excluded or included without rules."""
        soup = parse_html(HTML)
        visibility = TagVisibilityFilter(soup)
        assert not visibility.has_include_rules
        assert not visibility.is_excluded(soup.article)
        assert not visibility.is_included(soup.article)

    def test_tag_name_rules_case_insensitive(self):
        """Test tag-name rules match regardless of case."""
        soup = parse_html(HTML)
        visibility = TagVisibilityFilter(soup, include=["ARTICLE"], exclude=["Aside"])
        assert visibility.has_include_rules
        assert visibility.is_included(soup.article)
        assert visibility.is_excluded(soup.aside)

    def test_selector_rules_match_nodes(self):
        """Test selector rules match exactly the selected nodes."""
        soup = parse_html(HTML)
        visibility = TagVisibilityFilter(soup, include=["#main"], exclude=["div.comments"])
        assert visibility.is_included(soup.article)
        assert visibility.is_excluded(soup.find("div", class_="comments"))
        assert not visibility.is_excluded(soup.p)

    def test_selector_match_is_by_identity(self):
        """Test an element with identical markup elsewhere is not matched."""
        soup = parse_html("<body><section><p>same</p></section><aside><p>same</p></aside></body>")
        visibility = TagVisibilityFilter(soup, exclude=["aside p"])
        assert not visibility.is_excluded(soup.section.p)
        assert visibility.is_excluded(soup.aside.p)

    def test_blank_rules_ignored(self):
        """Test empty rule strings do not count as include rules."""
        soup = parse_html(HTML)
        assert not TagVisibilityFilter(soup, include=["", "  "]).has_include_rules

    def test_invalid_selector(self):
        """Test malformed selectors raise ParseFailure."""
        soup = parse_html(HTML)
        with pytest.raises(ParseFailure):
            TagVisibilityFilter(soup, exclude=["div["])
