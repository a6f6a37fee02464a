"""Ordered CSS selector fallbacks for scraped markup."""

from __future__ import annotations

from bs4 import Tag


def select_first(node: Tag, selectors) -> Tag | None:
    """Return the first element matched by the first selector that matches anything."""
    if node is None:
        return None
    for selector in selectors or ():
        found = node.select_one(selector)
        if found is not None:
            return found
    return None


def select_first_text(node: Tag, selectors, accept=None) -> str:
    """Return the first non-empty stripped text produced by ``selectors`` in order.

    ``accept`` optionally filters texts, so a generic selector can be listed
    after a precise one without leaking unrelated values.
    """
    if node is None:
        return ""
    for selector in selectors or ():
        for found in node.select(selector):
            text = found.get_text(" ", strip=True)
            if text and (accept is None or accept(text)):
                return text
    return ""


def select_all(node: Tag, selectors) -> list[Tag]:
    """Return every element of the first selector that yields a non-empty list."""
    if node is None:
        return []
    for selector in selectors or ():
        found = node.select(selector)
        if found:
            return list(found)
    return []
