"""XML helpers for request bodies and response parsing.

Request side: XML bodies are ElementTree nodes; node_to_string() produces the
text that goes on the wire and parse_xml() builds a node from text (used by
the CLI). Response side: xml_to_dict() turns an XML response body into a
JSON-compatible dict so callers get the same shape for XML and JSON APIs.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


def node_to_string(node: ET.Element) -> str:
    """Serialize an element (and its subtree) without an XML declaration."""
    return ET.tostring(node, encoding="unicode")


def parse_xml(text: str | bytes) -> ET.Element:
    """Parse XML text into its root element.

    Raises:
        ET.ParseError: If *text* is not well-formed XML.
    """
    return ET.fromstring(text)


# ---------------------------------------------------------------------------
# XML bytes → Python dict  (response parsing)
# ---------------------------------------------------------------------------


def xml_to_dict(xml_bytes: bytes) -> dict[str, Any]:
    """Convert XML bytes into a JSON-compatible dict.

    Namespace URIs are stripped from tag names, so
    ``{http://example.com/ns}Name`` becomes ``Name``.

    Returns:
        Dict with the root element tag as the single top-level key.

    Raises:
        ET.ParseError: If *xml_bytes* is not well-formed XML.
    """
    root = ET.fromstring(xml_bytes)
    return {_strip_ns(root.tag): _element_to_dict(root)}


def _strip_ns(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _element_to_dict(element: ET.Element) -> dict[str, Any] | str | None:
    """Recursively convert one element.

    - Attributes → ``@name`` keys (xmlns declarations skipped).
    - Repeated child tags → list; single child → scalar.
    - Text-only leaf → string; empty element → None.
    - Text alongside attributes/children → ``#text`` key.
    """
    result: dict[str, Any] = {}

    for attr_name, attr_value in element.attrib.items():
        if attr_name.startswith("xmlns") or attr_name.startswith("{"):
            continue
        result[f"@{attr_name}"] = attr_value

    children_by_tag: dict[str, list[Any]] = {}
    for child in element:
        children_by_tag.setdefault(_strip_ns(child.tag), []).append(_element_to_dict(child))

    for tag, values in children_by_tag.items():
        result[tag] = values if len(values) > 1 else values[0]

    text = (element.text or "").strip()
    if text:
        if result:
            result["#text"] = text
        else:
            return text

    if not result:
        return None

    return result
