"""ElementTree helpers shared by the codecs and transforms."""

import io
import re
import xml.etree.ElementTree as ET

_GENERATED_PREFIX = re.compile(r"ns\d+$")


def parse_xml(data: bytes | str) -> ET.Element:
    """Parse an XML document, keeping its comments and namespace prefixes.

    Prefixes declared in the document are registered with ElementTree so
    that re-serializing the tree writes the same prefixes back.

    Raises:
        ET.ParseError: If the document is not well formed.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    for _event, (prefix, uri) in ET.iterparse(io.BytesIO(data), events=("start-ns",)):
        if prefix and not _GENERATED_PREFIX.match(prefix):
            ET.register_namespace(prefix, uri)
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    parser.feed(data)
    return parser.close()


def to_xml(root: ET.Element, indent: bool = True) -> bytes:
    """Serialize an element as UTF-8 without an XML declaration."""
    if indent:
        ET.indent(root, space="  ")
    return ET.tostring(root, encoding="unicode").encode("utf-8")


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` part of a qualified tag or attribute name."""
    return tag.rsplit("}", 1)[-1]
