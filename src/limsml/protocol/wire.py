from __future__ import annotations

import re
from typing import Any, List, Optional
from xml.parsers.expat import ExpatError

import xmltodict

from ..errors import DecodeError


# Attributed trees follow the xmltodict convention: attributes are keys
# prefixed with '@', element text is the '#text' key, and repeated siblings
# are lists. An element with neither attributes nor children may appear as
# a bare string, or None if it is empty.

ATTRIBUTE = "@"
TEXT = "#text"

DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'

# Some server-side parsers require a space before the closing slash of
# empty elements.
_EMPTY = re.compile(r"<(\w+)/>")

# The XML generator single-quotes an attribute value containing a double
# quote; on the wire, attribute values are always double-quoted with any
# embedded quote escaped as &quot;.
_TAG = re.compile(r"<[^<>]+>")
_ATTRIBUTE = re.compile(r"""(\s[^\s=]+=)(?:"[^"]*"|'([^']*)')""")


def _double_quote(match: re.Match) -> str:
    value = match.group(2)
    if value is None:
        return match.group(0)
    return match.group(1) + '"' + value.replace('"', "&quot;") + '"'


def _quote_attributes(tag: re.Match) -> str:
    return _ATTRIBUTE.sub(_double_quote, tag.group(0))


def dumps(tree: dict, pretty: bool = False, declaration: bool = True) -> str:
    """
    Serialize attributed tree -> XML text

    Empty elements are rendered self-closing as <tag />, and attribute
    values are always double-quoted. The XML declaration, if requested, is
    prepended without trailing whitespace unless pretty-printing.
    """

    xml = xmltodict.unparse(
        tree,
        full_document=False,
        short_empty_elements=True,
        pretty=pretty,
        indent="  ",
    )

    xml = _TAG.sub(_quote_attributes, xml)
    xml = _EMPTY.sub(r"<\1 />", xml)

    if declaration:
        separator = "\n" if pretty else ""
        xml = DECLARATION + separator + xml

    return xml


def loads(text: str) -> dict:
    """
    Deserialize XML text -> attributed tree
    """

    try:
        return xmltodict.parse(text)
    except ExpatError as e:
        raise DecodeError(f"malformed LIMSML XML: {e}") from e


def listify(node: Any) -> List[Any]:
    """Normalize the singleton/array ambiguity of repeated siblings."""

    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def text(node: Any) -> Optional[str]:
    """Return the text slot of an attributed node, or None."""

    if node is None:
        return None
    if isinstance(node, dict):
        return node.get(TEXT)
    return str(node)


def attributes(node: Any) -> dict:
    """Return the attribute bag of an attributed node, without prefixes."""

    if not isinstance(node, dict):
        return {}

    return {
        key[len(ATTRIBUTE):]: value
        for key, value in node.items()
        if key.startswith(ATTRIBUTE)
    }


def value_to_string(value: Any) -> str:
    """Render a Python value the way the server expects to read it."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return value
    return str(value)


def string_to_value(value: Optional[str], type: str) -> Any:
    """Interpret dataset text according to its declared column type."""

    if value is None:
        return None

    if type == "boolean":
        return value.lower() == "true"

    return value
