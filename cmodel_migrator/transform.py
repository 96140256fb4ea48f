"""Structural transforms applied to datastream content.

The generator only depends on the ``StructuralTransform`` interface: take a
document and named parameters, return a new document.
"""

import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod

from .errors import SourceDataError
from .xmlutil import local_name, parse_xml, to_xml

logger = logging.getLogger(__name__)


class StructuralTransform(ABC):
    """Rewrites a text document according to named parameters."""

    @abstractmethod
    def apply(self, text: str, **params: str) -> str:
        """Return the transformed document.

        Args:
            text: The document to transform.
            **params: Transform parameters.
        """


class PartRenameTransform(StructuralTransform):
    """Renames one mechanism part inside a service definition document.

    Handles the three documents that mention part names:

    - DSINPUTSPEC: ``wsdlMsgPartName`` attributes.
    - METHODMAP: ``parmName`` attributes.
    - WSDL: ``name`` on ``part`` elements and ``(NAME)`` placeholders in
      ``location`` attributes.

    Parameters are ``old_name`` and ``new_name``. Documents that do not
    mention ``old_name`` come back unchanged.
    """

    RENAMED_ATTRIBUTES = ("wsdlMsgPartName", "parmName")

    def apply(self, text: str, **params: str) -> str:
        old_name = params["old_name"]
        new_name = params["new_name"]
        if old_name == new_name:
            return text

        try:
            root = parse_xml(text)
        except ET.ParseError as e:
            raise SourceDataError(f"Cannot rename part {old_name}: {e}") from e

        renamed = 0
        placeholder = f"({old_name})"
        for element in root.iter():
            if not isinstance(element.tag, str):
                continue  # comment
            for attribute, value in element.attrib.items():
                name = local_name(attribute)
                if name in self.RENAMED_ATTRIBUTES and value == old_name:
                    element.set(attribute, new_name)
                    renamed += 1
                elif name == "location" and placeholder in value:
                    element.set(attribute, value.replace(placeholder, f"({new_name})"))
                    renamed += 1
            if local_name(element.tag) == "part" and element.get("name") == old_name:
                element.set("name", new_name)
                renamed += 1

        if not renamed:
            return text
        logger.debug(f"Renamed part {old_name} to {new_name} in {renamed} places")
        return to_xml(root, indent=False).decode("utf-8")
