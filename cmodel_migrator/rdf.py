"""Builders for the small RDF/XML documents attached to generated objects."""

import xml.etree.ElementTree as ET

from .objects import MODEL_NS, RDF_NS
from .xmlutil import to_xml

ET.register_namespace("rdf", RDF_NS)
ET.register_namespace("fedora-model", MODEL_NS)

HAS_MODEL = "hasModel"
HAS_SERVICE = "hasService"
IS_DEPLOYMENT_OF = "isDeploymentOf"
IS_CONTRACTOR_OF = "isContractorOf"


def fedora_uri(pid_or_uri: str) -> str:
    """Return ``info:fedora/<pid>``, leaving values that are already URIs alone."""
    if pid_or_uri.startswith("info:fedora/"):
        return pid_or_uri
    return f"info:fedora/{pid_or_uri}"


def relationships(subject: str, statements: list[tuple[str, str]]) -> bytes:
    """Serialize model-namespace relationships about one object.

    Args:
        subject: Pid of the object the statements are about.
        statements: ``(predicate, object)`` pairs. Predicates are local names
            in the model namespace; objects are pids or ``info:fedora`` URIs.

    Returns:
        UTF-8 encoded RDF/XML.
    """
    root = ET.Element(f"{{{RDF_NS}}}RDF")
    description = ET.SubElement(
        root, f"{{{RDF_NS}}}Description", {f"{{{RDF_NS}}}about": fedora_uri(subject)}
    )
    for predicate, target in statements:
        ET.SubElement(
            description,
            f"{{{MODEL_NS}}}{predicate}",
            {f"{{{RDF_NS}}}resource": fedora_uri(target)},
        )
    return to_xml(root)
