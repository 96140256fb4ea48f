"""Immutable records for legacy repository objects.

The analyzer and generator never mutate these records. Derived objects are
built with ``dataclasses.replace`` or by constructing new records.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

# =============================================================================
# Vocabulary
# =============================================================================

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
MODEL_NS = "info:fedora/fedora-system:def/model#"
VIEW_NS = "info:fedora/fedora-system:def/view#"
RELS_EXT_NS = "info:fedora/fedora-system:def/relations-external#"
DS_COMPOSITE_NS = "info:fedora/fedora-system:def/dsCompositeModel#"

RDF_TYPE = f"{RDF_NS}type"
MODEL_LABEL = f"{MODEL_NS}label"
MODEL_STATE = f"{MODEL_NS}state"
MODEL_CONTENT_MODEL = f"{MODEL_NS}contentModel"
MODEL_CREATED = f"{MODEL_NS}createdDate"
VIEW_LAST_MODIFIED = f"{VIEW_NS}lastModifiedDate"

# Legacy object types, as found in the rdf:type object property.
DATA_OBJECT_TYPE = "FedoraObject"
MECHANISM_OBJECT_TYPE = "FedoraBMechObject"
DEFINITION_OBJECT_TYPE = "FedoraBDefObject"

# Object models of the target generation.
CONTENT_MODEL_3_0 = "info:fedora/fedora-system:ContentModel-3.0"
SERVICE_DEPLOYMENT_3_0 = "info:fedora/fedora-system:ServiceDeployment-3.0"
FEDORA_OBJECT_3_0 = "info:fedora/fedora-system:FedoraObject-3.0"

# Reserved datastream ids.
RELS_EXT = "RELS-EXT"
RELS_INT = "RELS-INT"
DC = "DC"
DS_COMPOSITE_MODEL = "DS-COMPOSITE-MODEL"
CLASS_DESCRIPTION = "CLASS-DESCRIPTION"
DSINPUTSPEC = "DSINPUTSPEC"
METHODMAP = "METHODMAP"
WSDL = "WSDL"

RDF_XML_MIME = "application/rdf+xml"
RELS_EXT_FORMAT = "info:fedora/fedora-system:FedoraRELSExt-1.0"
RELS_INT_FORMAT = "info:fedora/fedora-system:FedoraRELSInt-1.0"
DC_FORMAT = "http://www.openarchives.org/OAI/2.0/oai_dc/"
DS_COMPOSITE_MODEL_FORMAT = "info:fedora/fedora-system:FedoraDSCompositeModel-1.0"

INLINE_XML = "X"
MANAGED = "M"
EXTERNAL = "E"
REDIRECT = "R"


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class Datastream:
    """One version of a datastream (a named component of an object).

    Attributes:
        id: Datastream id, shared by all versions.
        version_id: Id of this version, e.g. ``"DC.0"``.
        control_group: ``"X"`` inline XML, ``"M"`` managed, ``"E"`` external
            or ``"R"`` redirect.
        mime_type: MIME type, if recorded.
        format_uri: Format URI, if recorded.
        label: Human-readable label.
        created: Creation time of this version.
        content: Inline bytes for ``X`` and embedded ``M`` datastreams.
        location: Reference for ``E``, ``R`` and by-reference ``M`` datastreams.
        versionable: Whether the repository keeps older versions.
        state: ``"A"`` active, ``"I"`` inactive or ``"D"`` deleted.
    """

    id: str
    version_id: str | None = None
    control_group: str = INLINE_XML
    mime_type: str | None = None
    format_uri: str | None = None
    label: str = ""
    created: datetime | None = None
    content: bytes | None = None
    location: str | None = None
    versionable: bool = True
    state: str = "A"

    @property
    def text(self) -> str:
        """Content decoded as UTF-8, or an empty string when there is none."""
        return self.content.decode("utf-8") if self.content is not None else ""

    def with_content(self, content: bytes) -> "Datastream":
        """Return a copy of this version carrying different content."""
        return replace(self, content=content)


@dataclass(frozen=True)
class DatastreamBinding:
    """Assignment of a datastream to a mechanism's binding key."""

    key: str
    datastream_id: str
    label: str = ""
    order: int = 0


@dataclass(frozen=True)
class Disseminator:
    """One version of a legacy disseminator.

    A disseminator ties an object to a behavior definition and the mechanism
    implementing it, and binds the object's datastreams to the mechanism's
    parts.
    """

    id: str
    definition_id: str
    mechanism_id: str
    version_id: str | None = None
    label: str = ""
    created: datetime | None = None
    bindings: tuple[DatastreamBinding, ...] = ()
    binding_map_id: str | None = None
    state: str = "A"

    def assignments(self) -> frozenset[str]:
        """Binding assignments as ``"key=datastreamId"`` strings."""
        return frozenset(f"{b.key}={b.datastream_id}" for b in self.bindings)


def _newer(candidate: datetime | None, current: datetime | None) -> bool:
    # Strictly greater only: on ties the first version seen is kept.
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate > current


def latest_version(versions):
    """Pick the version with the strictly greatest creation time.

    Args:
        versions: Versions in document order, each with a ``created`` attribute.

    Returns:
        The latest version, or None when there are no versions.
    """
    latest = None
    for version in versions:
        if latest is None or _newer(version.created, latest.created):
            latest = version
    return latest


@dataclass(frozen=True)
class DigitalObject:
    """A repository object with all of its datastream and disseminator versions.

    Attributes:
        pid: Persistent identifier.
        label: Object label.
        properties: Object properties and extended properties, keyed by URI.
        datastreams: Every datastream version, in document order.
        disseminators: Every disseminator version, in document order.
    """

    pid: str
    label: str = ""
    properties: dict[str, str] = field(default_factory=dict)
    datastreams: tuple[Datastream, ...] = ()
    disseminators: tuple[Disseminator, ...] = ()

    def property(self, name: str) -> str | None:
        return self.properties.get(name)

    def datastream_ids(self) -> list[str]:
        """Distinct datastream ids in first-seen order."""
        return list(dict.fromkeys(ds.id for ds in self.datastreams))

    def datastream_versions(self, datastream_id: str) -> list[Datastream]:
        return [ds for ds in self.datastreams if ds.id == datastream_id]

    def latest_datastream(self, datastream_id: str) -> Datastream | None:
        return latest_version(self.datastream_versions(datastream_id))

    def latest_datastreams(self) -> list[Datastream]:
        """The latest version of every datastream, in first-seen order."""
        return [self.latest_datastream(ds_id) for ds_id in self.datastream_ids()]

    def disseminator_ids(self) -> list[str]:
        return list(dict.fromkeys(diss.id for diss in self.disseminators))

    def latest_disseminator(self, disseminator_id: str) -> Disseminator | None:
        return latest_version(
            diss for diss in self.disseminators if diss.id == disseminator_id
        )

    def latest_disseminators(self) -> list[Disseminator]:
        return [self.latest_disseminator(d_id) for d_id in self.disseminator_ids()]


# =============================================================================
# Object kinds
# =============================================================================


class ObjectKind(str, Enum):
    """How the analyzer treats an object."""

    PLAIN_INSTANCE = "plain"
    MECHANISM = "mechanism"
    DEFINITION = "definition"
    UNCLASSIFIABLE = "unclassifiable"


def _loosely_matches(value: str, name: str) -> bool:
    # Accepts "FedoraObject", "info:fedora/fedora-system:def/model#FedoraObject", etc.
    value = value.strip()
    return value == name or value.endswith(f"#{name}") or value.endswith(f"/{name}")


def object_kind(obj: DigitalObject) -> ObjectKind:
    """Determine an object's kind from its ``rdf:type`` property."""
    fedora_type = obj.property(RDF_TYPE)
    if not fedora_type:
        return ObjectKind.UNCLASSIFIABLE
    if _loosely_matches(fedora_type, DATA_OBJECT_TYPE):
        return ObjectKind.PLAIN_INSTANCE
    if _loosely_matches(fedora_type, MECHANISM_OBJECT_TYPE):
        return ObjectKind.MECHANISM
    if _loosely_matches(fedora_type, DEFINITION_OBJECT_TYPE):
        return ObjectKind.DEFINITION
    return ObjectKind.UNCLASSIFIABLE


# =============================================================================
# Legacy datastream upgrade
# =============================================================================

_LEGACY_DEFAULTS: dict[str, tuple[str | None, str]] = {
    RELS_EXT: (RDF_XML_MIME, RELS_EXT_FORMAT),
    RELS_INT: (RDF_XML_MIME, RELS_INT_FORMAT),
    DC: (None, DC_FORMAT),
}


def upgrade_legacy_datastreams(obj: DigitalObject) -> DigitalObject:
    """Return a copy with the MIME types and format URIs the new generation expects.

    RELS-EXT and RELS-INT always get ``application/rdf+xml`` and their format
    URI. DC gets the ``oai_dc`` format URI when it has none. Objects that
    already conform are returned unchanged.
    """
    upgraded = []
    changed = False
    for ds in obj.datastreams:
        defaults = _LEGACY_DEFAULTS.get(ds.id)
        if defaults is None:
            upgraded.append(ds)
            continue
        mime_type, format_uri = defaults
        new_ds = replace(
            ds,
            mime_type=mime_type or ds.mime_type,
            format_uri=ds.format_uri if ds.id == DC and ds.format_uri else format_uri,
        )
        changed = changed or new_ds != ds
        upgraded.append(new_ds)
    if not changed:
        return obj
    return replace(obj, datastreams=tuple(upgraded))
