"""Minimal HTML traversal interface used by the metadata extractor.

The extractor only needs a few capabilities: select elements by tag,
look up an enclosing element, read an attribute, and read text.  ``HtmlNode`` names exactly that, and
``parse_html`` returns a BeautifulSoup-backed implementation.
"""

from __future__ import annotations

import re
from typing import Optional, Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


class HtmlNode(Protocol):
    def find(self, tag: str) -> Optional["HtmlNode"]:
        """First descendant element named *tag*, in document order."""
        ...

    def find_all(self, *tags: str) -> list["HtmlNode"]:
        """All descendant elements named any of *tags*, in document order."""
        ...

    def find_parent(self, *tags: str) -> Optional["HtmlNode"]:
        """Nearest enclosing element named any of *tags*."""
        ...

    def attr(self, name: str) -> Optional[str]:
        ...

    @property
    def text(self) -> str:
        """Descendant text with whitespace collapsed to single spaces."""
        ...


class SoupNode:
    """``HtmlNode`` over a BeautifulSoup document or tag."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def find(self, tag: str) -> Optional[SoupNode]:
        found = self._tag.find(tag)
        return SoupNode(found) if isinstance(found, Tag) else None

    def find_all(self, *tags: str) -> list[SoupNode]:
        return [SoupNode(t) for t in self._tag.find_all(list(tags)) if isinstance(t, Tag)]

    def find_parent(self, *tags: str) -> Optional[SoupNode]:
        found = self._tag.find_parent(list(tags))
        return SoupNode(found) if isinstance(found, Tag) else None

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):  # multi-valued attributes such as ``rel``
            return " ".join(value)
        return value

    @property
    def text(self) -> str:
        return collapse_whitespace(self._tag.get_text(separator=" "))


def parse_html(html: str) -> SoupNode:
    """Parse *html* leniently; scripts, styles and templates are dropped."""
    soup = BeautifulSoup(html or "", "html.parser")
    for element in soup.find_all(["script", "style", "noscript", "template"]):
        element.decompose()
    return SoupNode(soup)
