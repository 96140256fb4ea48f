"""Signature-based content-model classifier.

Objects with equal signatures share one generated content model. The
classifier owns its memo table and is meant to be used for a single run.
"""

import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from .aspects import Aspect, resolve_active_aspects
from .directives import Directive
from .objects import (
    CLASS_DESCRIPTION,
    CONTENT_MODEL_3_0,
    DS_COMPOSITE_MODEL,
    DS_COMPOSITE_MODEL_FORMAT,
    DS_COMPOSITE_NS,
    FEDORA_OBJECT_3_0,
    INLINE_XML,
    MODEL_LABEL,
    MODEL_STATE,
    RDF_XML_MIME,
    RELS_EXT,
    RELS_EXT_FORMAT,
    Datastream,
    DigitalObject,
)
from .pid import PidAllocator, SimplePidAllocator
from .rdf import HAS_MODEL, HAS_SERVICE, relationships
from .signature import Exact, Signature
from .xmlutil import to_xml

logger = logging.getLogger(__name__)

CONTENT_MODEL_LABEL = "Generated CModel"
RELS_EXT_LABEL = "RDF Statements about this object"
DS_COMPOSITE_MODEL_LABEL = "Datastream Composite Model"
CLASS_DESCRIPTION_LABEL = (
    "Technical description of the class of objects assigned to this content model"
)
TEXT_XML = "text/xml"


@dataclass(frozen=True)
class ContentModelRecord:
    """A generated content model.

    Attributes:
        pid: Assigned pid.
        ordinal: 1-based discovery order within the run.
        signature: The signature every member shares.
        datastreams: RELS-EXT, DS-COMPOSITE-MODEL and CLASS-DESCRIPTION.
        label: Object label.
    """

    pid: str
    ordinal: int
    signature: Signature
    datastreams: tuple[Datastream, ...]
    label: str = CONTENT_MODEL_LABEL

    @property
    def class_description(self) -> str:
        """Content of the CLASS-DESCRIPTION datastream."""
        for ds in self.datastreams:
            if ds.id == CLASS_DESCRIPTION:
                return ds.text
        return ""

    def as_object(self) -> DigitalObject:
        """The content model as a digital object ready for serialization."""
        return DigitalObject(
            pid=self.pid,
            label=self.label,
            properties={MODEL_STATE: "A", MODEL_LABEL: self.label},
            datastreams=self.datastreams,
        )


class Classifier(ABC):
    """Assigns plain objects to content models."""

    @abstractmethod
    def classify(self, obj: DigitalObject) -> ContentModelRecord | None:
        """Return the content model for ``obj``, or None if it gets none."""

    @abstractmethod
    def directives_for(self, record: ContentModelRecord) -> list[Directive]:
        """Return the deployment directives owned by ``record``."""


class DefaultClassifier(Classifier):
    """Classifier that groups objects by their signature.

    Example:
        >>> classifier = DefaultClassifier(pid_allocator=SimplePidAllocator())
        >>> record = classifier.classify(obj)
        >>> record.pid
        'changeme:CModel1'
        >>> [d.new_deployment_id for d in classifier.directives_for(record)]
        ['changeme:CModel1-SDep1']
    """

    def __init__(
        self,
        aspects: Iterable[Aspect] | None = None,
        pid_allocator: PidAllocator | None = None,
        *,
        ignore_datastream_ids: Iterable[str] = (),
        explicit_basic_model: bool = False,
        part_renames: Mapping[str, str] | None = None,
        rename_parts_to_datastreams: bool = False,
        deployment_allocator: PidAllocator | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            aspects: Active aspects. Defaults to all of them; mandatory
                aspects and the dependency closure are always applied.
            pid_allocator: Source of content-model pids. Defaults to
                ``SimplePidAllocator()``.
            ignore_datastream_ids: Datastream ids left out of signatures
                unless bound to a mechanism.
            explicit_basic_model: Also declare FedoraObject-3.0 in RELS-EXT.
            part_renames: Part renames applied to every directive.
            rename_parts_to_datastreams: Rename each part to the datastream it
                is bound to instead of keeping its name.
            deployment_allocator: Source of deployment pids shared by all
                content models. By default each content model numbers its
                deployments ``<pid>-SDep1``, ``<pid>-SDep2``, ...
        """
        self.aspects = resolve_active_aspects(aspects)
        self.pid_allocator = pid_allocator or SimplePidAllocator()
        self.ignore_datastream_ids = frozenset(ignore_datastream_ids)
        self.explicit_basic_model = explicit_basic_model
        self.part_renames = dict(part_renames or {})
        self.rename_parts_to_datastreams = rename_parts_to_datastreams
        self.deployment_allocator = deployment_allocator

        self._created = datetime.now(timezone.utc)
        self._content_models: dict[Signature, ContentModelRecord] = {}
        self._member_signatures: dict[str, Signature] = {}
        self._directives: dict[str, list[Directive]] = {}

    @property
    def records(self) -> list[ContentModelRecord]:
        """Content models generated so far, in discovery order."""
        return list(self._content_models.values())

    def signature_for(self, pid: str) -> Signature | None:
        """Signature of the content model with the given pid."""
        return self._member_signatures.get(pid)

    def signature(self, obj: DigitalObject) -> Signature:
        return Signature.build(obj, self.aspects, self.ignore_datastream_ids)

    def classify(self, obj: DigitalObject) -> ContentModelRecord:
        signature = self.signature(obj)
        record = self._content_models.get(signature)
        if record is not None:
            logger.debug(f"{obj.pid} matches existing content model {record.pid}")
            return record

        pid = self.pid_allocator.next_id()
        record = ContentModelRecord(
            pid=pid,
            ordinal=len(self._content_models) + 1,
            signature=signature,
            datastreams=(
                self._inline_datastream(
                    RELS_EXT,
                    RDF_XML_MIME,
                    RELS_EXT_FORMAT,
                    RELS_EXT_LABEL,
                    self._relationships(pid, signature),
                ),
                self._inline_datastream(
                    DS_COMPOSITE_MODEL,
                    TEXT_XML,
                    DS_COMPOSITE_MODEL_FORMAT,
                    DS_COMPOSITE_MODEL_LABEL,
                    _composite_model(signature),
                ),
                self._inline_datastream(
                    CLASS_DESCRIPTION,
                    TEXT_XML,
                    None,
                    CLASS_DESCRIPTION_LABEL,
                    _class_description(signature),
                ),
            ),
        )
        self._content_models[signature] = record
        self._member_signatures[pid] = signature
        logger.debug(f"{obj.pid} starts new content model {pid}")
        return record

    def directives_for(self, record: ContentModelRecord) -> list[Directive]:
        if record.pid in self._directives:
            return list(self._directives[record.pid])

        mechanism_ids = record.signature.mechanism_ids
        directives: list[Directive] = []
        if isinstance(mechanism_ids, Exact) and mechanism_ids.value:
            allocator = self.deployment_allocator or SimplePidAllocator(
                prefix=f"{record.pid}-SDep"
            )
            for mechanism_id in sorted(mechanism_ids.value):
                directives.append(
                    Directive(
                        source_mechanism_id=mechanism_id,
                        new_deployment_id=allocator.next_id(),
                        renamed_parts=self._renamed_parts(
                            record.signature.bindings_for(mechanism_id) or ()
                        ),
                    )
                )
        self._directives[record.pid] = directives
        return list(directives)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _renamed_parts(self, assignments: Iterable[str]) -> dict[str, str]:
        parts: dict[str, str] = {}
        for assignment in sorted(assignments):
            key, _, datastream_id = assignment.partition("=")
            default = datastream_id if self.rename_parts_to_datastreams else key
            parts[key] = self.part_renames.get(key, default)
        return parts

    def _relationships(self, pid: str, signature: Signature) -> bytes:
        statements = [
            (HAS_SERVICE, definition_id)
            for definition_id in sorted(signature.exact_ids(Aspect.DEFINITION_IDS) or ())
        ]
        statements.append((HAS_MODEL, CONTENT_MODEL_3_0))
        if self.explicit_basic_model:
            statements.append((HAS_MODEL, FEDORA_OBJECT_3_0))
        return relationships(pid, statements)

    def _inline_datastream(
        self,
        datastream_id: str,
        mime_type: str,
        format_uri: str | None,
        label: str,
        content: bytes,
    ) -> Datastream:
        return Datastream(
            id=datastream_id,
            version_id=f"{datastream_id}1.0",
            control_group=INLINE_XML,
            mime_type=mime_type,
            format_uri=format_uri,
            label=label,
            created=self._created,
            content=content,
        )


def _composite_model(signature: Signature) -> bytes:
    root = ET.Element("dsCompositeModel", {"xmlns": DS_COMPOSITE_NS})
    for ds_id in sorted(signature.exact_ids(Aspect.DATASTREAM_IDS) or ()):
        type_model = ET.SubElement(root, "dsTypeModel", {"ID": ds_id})
        form = {}
        mime_type = signature.mime_type(ds_id)
        format_uri = signature.format_uri(ds_id)
        if mime_type is not None:
            form["MIME"] = mime_type
        if format_uri is not None:
            form["FORMAT_URI"] = format_uri
        if form:
            ET.SubElement(type_model, "form", form)
    return to_xml(root)


def _class_description(signature: Signature) -> bytes:
    root = ET.Element("class-description")
    root.text = f"\n{signature.render()}\n"
    return to_xml(root, indent=False)
