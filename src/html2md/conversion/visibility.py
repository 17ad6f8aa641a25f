"""Include/exclude rules deciding which parts of a document are converted."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from bs4 import Tag
from soupsieve import SelectorSyntaxError

from ..errors import ParseFailure

logger = logging.getLogger(__name__)

_TAG_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")


def is_tag_name_rule(rule: str) -> bool:
    """True for bare element names; everything else is a CSS selector."""
    return bool(_TAG_NAME.match(rule.strip()))


class _RuleSet:
    """Tag-name rules plus the nodes matched by selector rules."""

    def __init__(self, root: Tag, rules: Iterable[str]) -> None:
        self.names: set[str] = set()
        # Tag.__eq__ compares markup, so selector matches are tracked by identity.
        self.node_ids: set[int] = set()
        self.count = 0

        for rule in rules:
            rule = rule.strip()
            if not rule:
                continue
            self.count += 1
            if is_tag_name_rule(rule):
                self.names.add(rule.lower())
                continue
            try:
                matches = root.select(rule)
            except SelectorSyntaxError as e:
                raise ParseFailure(f"Invalid path expression {rule!r}: {e}") from e
            logger.debug(f"Path expression {rule!r} matched {len(matches)} node(s)")
            self.node_ids.update(id(node) for node in matches)

    def matches(self, node: Tag) -> bool:
        name = (node.name or "").lower()
        return name in self.names or id(node) in self.node_ids


class TagVisibilityFilter:
    """
    Decides per element whether it is converted.

    Exclude rules win: an excluded element is skipped together with its whole
    subtree, even when an include rule matches something inside it. With no
    include rules everything not excluded is visible; otherwise only
    include-matched elements and their descendants are.

    Example:
        visibility = TagVisibilityFilter(soup, include=["article"], exclude=["div.comments"])
        visibility.is_excluded(node)
    """

    def __init__(self, root: Tag, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> None:
        self._include = _RuleSet(root, include)
        self._exclude = _RuleSet(root, exclude)

    @property
    def has_include_rules(self) -> bool:
        return self._include.count > 0

    def is_excluded(self, node: Tag) -> bool:
        return self._exclude.matches(node)

    def is_included(self, node: Tag) -> bool:
        """True if ``node`` itself matches an include rule."""
        return self._include.matches(node)
