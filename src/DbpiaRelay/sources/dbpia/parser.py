"""DBpia XML parser.

Turns the raw XML payload into a plain nested mapping that the normalizer can
walk without caring about element objects.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

from DbpiaRelay.errors import ParseError

# Tags that may legitimately repeat; always parsed as lists so a single
# occurrence has the same shape as many.
ALWAYS_LIST_TAGS = frozenset({"item", "author", "keyword"})

ATTRIBUTE_PREFIX = "@"
TEXT_KEY = "#text"


def parse_xml(text: str | None) -> dict[str, Any]:
    """Parse DBpia XML into a nested mapping.

    Element children become mapping entries keyed by tag. Attributes are stored
    with an ``@`` prefix and element text next to children under ``#text``.
    Leaf elements collapse to their stripped text.

    Args:
        text: Raw XML text.

    Returns:
        ``{root_tag: tree}``, or an empty mapping for empty/blank input.

    Raises:
        ParseError: If the XML is malformed.
    """
    if not text or not text.strip():
        return {}
    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as e:
        raise ParseError(f"Malformed XML response: {e}") from e
    return {_local_name(root.tag): _element_to_value(root)}


def _element_to_value(element: ET.Element) -> Any:
    """Convert one element into a string leaf or a mapping."""
    node: dict[str, Any] = {}
    for name, value in element.attrib.items():
        node[ATTRIBUTE_PREFIX + _local_name(name)] = value

    for child in element:
        tag = _local_name(child.tag)
        value = _element_to_value(child)
        if tag in ALWAYS_LIST_TAGS:
            node.setdefault(tag, []).append(value)
        elif tag in node:
            existing = node[tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[tag] = [existing, value]
        else:
            node[tag] = value

    text = (element.text or "").strip()
    if not node:
        return text
    if text:
        node[TEXT_KEY] = text
    return node


def _local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from a tag or attribute name."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag
