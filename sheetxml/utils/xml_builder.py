from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import re
import xml.etree.ElementTree as ET
from xml.dom import minidom
import logging

from .exceptions import InvalidHeaderFieldError

log = logging.getLogger(__name__)

EMPTY_TAG = "EMPTY_TAG"

_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_TAG_CHARS_RE = re.compile(r"[^a-zA-Z0-9_.-]")
_TAG_START_RE = re.compile(r"^[a-zA-Z_]")
# XML 1.0 names without namespace prefixes
_XML_NAME_RE = re.compile(r"^[^\W\d.-][\w.-]*$")
# Characters that XML 1.0 does not allow in text content
_XML_ILLEGAL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")
_CR_REFERENCE = b"&#xD;"

HeaderFields = Union[Mapping[str, Any], Sequence[Any]]


def sanitize_xml_tag(tag: Any) -> str:
    """Turn an arbitrary column label into a valid XML element name."""
    if tag is None or tag == "":
        return EMPTY_TAG

    tag = _WHITESPACE_RE.sub("_", str(tag).strip())
    tag = _INVALID_TAG_CHARS_RE.sub("", tag)
    if not tag:
        return EMPTY_TAG

    if not _TAG_START_RE.match(tag):
        tag = "_" + tag
    return tag


def _iter_header_fields(header_fields: HeaderFields) -> Iterable[Tuple[Any, Any]]:
    """Yield (name, value) pairs from a mapping, pairs or HeaderField models."""
    if isinstance(header_fields, Mapping):
        yield from header_fields.items()
        return
    for field in header_fields:
        if hasattr(field, "name") and hasattr(field, "value"):
            yield field.name, field.value
        elif isinstance(field, Mapping):
            yield field.get("name"), field.get("value")
        else:
            name, value = field
            yield name, value


def _clean_text(value: str) -> str:
    return _XML_ILLEGAL_CHARS_RE.sub("", value)


def _create_header(root: ET.Element, header_fields: HeaderFields, header_tag: str) -> None:
    """Create XML header section with provided fields."""
    header = ET.SubElement(root, header_tag)

    for key, value in _iter_header_fields(header_fields):
        # Keep the caller's name, only whitespace becomes underscores
        tag_name = _WHITESPACE_RE.sub("_", str(key if key is not None else "").strip())
        if not _XML_NAME_RE.match(tag_name):
            raise InvalidHeaderFieldError(str(key), f"'{tag_name}' is not a valid XML element name")
        try:
            text = "" if value is None else str(value)
        except Exception as e:
            raise InvalidHeaderFieldError(tag_name, str(e)) from e

        field = ET.SubElement(header, tag_name)
        field.text = _clean_text(text)


def _create_data_section(body: ET.Element, records: List[Dict[str, str]], row_tag: str) -> None:
    """Create XML data section from processed records."""
    for record in records:
        row = ET.SubElement(body, row_tag)
        for field_name, value in record.items():
            field = ET.SubElement(row, sanitize_xml_tag(field_name))
            field.text = _clean_text(value if value is not None else "")


def build_xml_tree(
    records: List[Dict[str, str]],
    header_fields: Optional[HeaderFields] = None,
    *,
    root_tag: str = "CALLREPORT",
    header_tag: str = "HEADER",
    body_tag: str = "BODY",
    row_tag: str = "CALLREPORT_DATA"
) -> ET.Element:
    """Assemble the document tree: root, optional header, body of rows.

    Header children are named by the caller's keys with whitespace replaced by
    underscores and are not otherwise sanitized. Body fields are named by
    ``sanitize_xml_tag``.
    """
    root = ET.Element(root_tag)

    if header_fields:
        log.info(f"Processing {len(header_fields)} header fields")
        _create_header(root, header_fields, header_tag)

    body = ET.SubElement(root, body_tag)
    _create_data_section(body, records, row_tag)
    return root


def serialize_xml(root: ET.Element) -> bytes:
    """Render the tree as an indented UTF-8 document with an XML declaration.

    Carriage returns in text are written as ``&#xD;`` so that parsers, which
    normalize literal line endings, read the cell text back unchanged.
    """
    content = ET.tostring(root, encoding="utf-8").replace(b"\r", _CR_REFERENCE)
    parsed = minidom.parseString(content)
    return parsed.toprettyxml(indent="  ", encoding="utf-8").replace(b"\r", _CR_REFERENCE)
