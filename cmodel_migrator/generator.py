"""Service deployment generation.

Second phase of the migration: read the analysis directory, write an upgrade
stylesheet for every member and side list, and for every deployment directive
clone the referenced legacy mechanism into a new service deployment with
renamed parts.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from . import directives as directive_codec
from .analyzer import (
    CMODEL_PREFIX,
    DEFINITION_LIST,
    DEPLOYMENT_LIST,
    NO_CMODEL_LIST,
    deployments_filename,
)
from .directives import Directive
from .errors import ArtifactIOError, DirectiveSyntaxError, SourceDataError
from .foxml import ObjectSerializer
from .objects import (
    DSINPUTSPEC,
    FEDORA_OBJECT_3_0,
    INLINE_XML,
    METHODMAP,
    MODEL_LABEL,
    MODEL_STATE,
    RDF_XML_MIME,
    RELS_EXT,
    RELS_EXT_FORMAT,
    SERVICE_DEPLOYMENT_3_0,
    WSDL,
    Datastream,
    DigitalObject,
    upgrade_legacy_datastreams,
)
from .rdf import HAS_MODEL, IS_CONTRACTOR_OF, IS_DEPLOYMENT_OF, relationships
from .store import ObjectStore
from .stylesheet import upgrade_stylesheet
from .transform import StructuralTransform
from .xmlutil import parse_xml

logger = logging.getLogger(__name__)

# Datastreams that name mechanism parts and get the part renames applied.
PART_DEFINITION_DATASTREAMS = (DSINPUTSPEC, METHODMAP, WSDL)

RELS_EXT_LABEL = "RDF Statements about this object"

# Side lists that get a stylesheet without a content model.
SIDE_LISTS = (NO_CMODEL_LIST, DEPLOYMENT_LIST, DEFINITION_LIST)

_CONTENT_MODEL_FILE = re.compile(rf"^{CMODEL_PREFIX}(\d+)\.xml$")


class DeploymentGenerator:
    """Clones a legacy mechanism into a service deployment.

    Example:
        >>> generator = DeploymentGenerator(PartRenameTransform())
        >>> deployment = generator.generate(directive, mechanism, "demo:CModel1")
        >>> deployment.pid == directive.new_deployment_id
        True
    """

    def __init__(
        self, transform: StructuralTransform, explicit_basic_model: bool = False
    ) -> None:
        self.transform = transform
        self.explicit_basic_model = explicit_basic_model

    def generate(
        self, directive: Directive, source: DigitalObject, content_model_pid: str
    ) -> DigitalObject:
        """Build the deployment described by ``directive``.

        The clone has the same datastream ids as the source. DSINPUTSPEC,
        METHODMAP and WSDL have their parts renamed, RELS-EXT is regenerated
        and every other datastream is copied unchanged. Only the latest
        version of each datastream is carried over.

        Args:
            directive: Which deployment to create and how to rename parts.
            source: The legacy mechanism named by the directive.
            content_model_pid: Content model the deployment serves.

        Returns:
            The new deployment object.

        Raises:
            SourceDataError: If the source lacks DSINPUTSPEC, METHODMAP or
                WSDL, or its DSINPUTSPEC names no behavior definition.
        """
        latest = {ds.id: ds for ds in source.latest_datastreams()}
        for ds_id in PART_DEFINITION_DATASTREAMS:
            if ds_id not in latest:
                raise SourceDataError(f"Mechanism {source.pid} has no {ds_id} datastream")
        definition_id = self._definition_id(source.pid, latest[DSINPUTSPEC])

        produced: dict[str, Datastream] = {}
        for ds_id in PART_DEFINITION_DATASTREAMS:
            produced[ds_id] = self._renamed_copy(latest[ds_id], directive.renamed_parts)
        produced[RELS_EXT] = self._relationships(
            directive.new_deployment_id, definition_id, content_model_pid
        )

        datastreams = [produced.pop(ds.id, ds) for ds in latest.values()]
        datastreams += produced.values()

        label = f"Generated deployment for {content_model_pid} (copy of {source.pid})"
        logger.debug(f"Generated {directive.new_deployment_id} from {source.pid}")
        return DigitalObject(
            pid=directive.new_deployment_id,
            label=label,
            properties={MODEL_STATE: "A", MODEL_LABEL: label},
            datastreams=tuple(datastreams),
        )

    def _definition_id(self, pid: str, input_spec: Datastream) -> str:
        try:
            root = parse_xml(input_spec.content or b"")
        except ET.ParseError as e:
            raise SourceDataError(f"Error reading {DSINPUTSPEC} of {pid}: {e}") from e
        definition_id = root.get("bDefPID")
        if not definition_id:
            raise SourceDataError(f"{DSINPUTSPEC} of {pid} has no bDefPID")
        return definition_id

    def _renamed_copy(self, ds: Datastream, renamed_parts: dict[str, str]) -> Datastream:
        if ds.content is None:
            return ds
        text = ds.text
        for old_name, new_name in renamed_parts.items():
            text = self.transform.apply(text, old_name=old_name, new_name=new_name)
        if text == ds.text:
            return ds
        return ds.with_content(text.encode("utf-8"))

    def _relationships(
        self, pid: str, definition_id: str, content_model_pid: str
    ) -> Datastream:
        statements = [
            (IS_DEPLOYMENT_OF, definition_id),
            (IS_CONTRACTOR_OF, content_model_pid),
            (HAS_MODEL, SERVICE_DEPLOYMENT_3_0),
        ]
        if self.explicit_basic_model:
            statements.append((HAS_MODEL, FEDORA_OBJECT_3_0))
        return Datastream(
            id=RELS_EXT,
            version_id=f"{RELS_EXT}1.0",
            control_group=INLINE_XML,
            mime_type=RDF_XML_MIME,
            format_uri=RELS_EXT_FORMAT,
            label=RELS_EXT_LABEL,
            created=datetime.now(timezone.utc),
            content=relationships(pid, statements),
        )


@dataclass
class GenerationResult:
    """Outcome of one generation run.

    Attributes:
        content_models: Number of content model files read.
        deployments: Written deployment files, keyed by new deployment pid.
        stylesheets: Written upgrade stylesheets, in writing order.
    """

    content_models: int = 0
    deployments: dict[str, Path] = field(default_factory=dict)
    stylesheets: list[Path] = field(default_factory=list)


class Generator:
    """Generates every deployment requested by an analysis directory."""

    def __init__(
        self,
        store: ObjectStore,
        analysis_dir: str | Path,
        serializer: ObjectSerializer,
        deployment_generator: DeploymentGenerator,
        upgrade_legacy: bool = True,
    ) -> None:
        """Initialize the generator.

        Args:
            store: Where the legacy mechanisms are looked up.
            analysis_dir: Output directory of the analysis run. Deployment
                files are written here too.
            serializer: Reads content models and writes deployments.
            deployment_generator: Builds each deployment.
            upgrade_legacy: Fix legacy datastream MIME types and format URIs
                of each mechanism before cloning it.
        """
        self.store = store
        self.analysis_dir = Path(analysis_dir)
        self.serializer = serializer
        self.deployment_generator = deployment_generator
        self.upgrade_legacy = upgrade_legacy

    def content_model_files(self) -> list[tuple[int, Path]]:
        """``cmodel-<n>.xml`` files in the analysis directory, ordered by n."""
        try:
            entries = list(self.analysis_dir.iterdir())
        except OSError as e:
            raise ArtifactIOError(self.analysis_dir, e) from e
        found = []
        for path in entries:
            match = _CONTENT_MODEL_FILE.match(path.name)
            if match and path.is_file():
                found.append((int(match.group(1)), path))
        return sorted(found)

    def generate_all(self) -> GenerationResult:
        """Write the upgrade stylesheets and the deployments of every content model.

        Every content model and directive file is read before anything is
        written, so a malformed directive file leaves the analysis directory
        untouched.

        Returns:
            What was written.

        Raises:
            DirectiveSyntaxError: If a directive file is malformed.
            SourceDataError: If a referenced mechanism is missing or unusable.
            ArtifactIOError: If a file cannot be read or written.
        """
        plans = []
        for ordinal, path in self.content_model_files():
            content_model = self.serializer.read(path)
            directives_path = self.analysis_dir / deployments_filename(ordinal)
            directives = (
                self._read_directives(directives_path) if directives_path.exists() else []
            )
            plans.append((ordinal, content_model.pid, directives))

        result = GenerationResult(content_models=len(plans))
        for ordinal, content_model_pid, directives in plans:
            logger.info(f"Writing stylesheet for objects with content model {content_model_pid}")
            result.stylesheets.append(
                self._write_stylesheet(
                    f"{CMODEL_PREFIX}{ordinal}.members.xslt",
                    upgrade_stylesheet(content_model_pid),
                )
            )
            if not directives:
                continue
            logger.info(
                f"Generating service deployment object(s) for content model {content_model_pid}"
            )
            for index, directive in enumerate(directives, 1):
                out_path = self.analysis_dir / f"{CMODEL_PREFIX}{ordinal}.deployment{index}.xml"
                self.generate_one(directive, content_model_pid, out_path)
                result.deployments[directive.new_deployment_id] = out_path

        for list_name in SIDE_LISTS:
            if (self.analysis_dir / list_name).exists():
                name = f"{Path(list_name).stem}.xslt"
                result.stylesheets.append(self._write_stylesheet(name, upgrade_stylesheet()))
                logger.info(f"Wrote stylesheet for {list_name}, {name}")

        logger.info(
            f"Generated stylesheets and {len(result.deployments)} service deployments "
            f"for {result.content_models} content models."
        )
        return result

    def _write_stylesheet(self, name: str, text: str) -> Path:
        path = self.analysis_dir / name
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ArtifactIOError(path, e) from e
        return path

    def generate_one(
        self, directive: Directive, content_model_pid: str, out_path: Path
    ) -> DigitalObject:
        """Generate one deployment and write it to ``out_path``."""
        logger.info(
            f"Generating service deployment {directive.new_deployment_id} "
            f"from original, {directive.source_mechanism_id}"
        )
        source = self.store.get_object(directive.source_mechanism_id)
        if source is None:
            raise SourceDataError(
                f"Referenced source not found: {directive.source_mechanism_id}"
            )
        if self.upgrade_legacy:
            source = upgrade_legacy_datastreams(source)
        deployment = self.deployment_generator.generate(directive, source, content_model_pid)
        self.serializer.write(deployment, out_path)
        return deployment

    @staticmethod
    def _read_directives(path: Path) -> list[Directive]:
        try:
            with open(path, encoding="utf-8") as f:
                return directive_codec.decode(f)
        except OSError as e:
            raise ArtifactIOError(path, e) from e
        except DirectiveSyntaxError as e:
            raise DirectiveSyntaxError(f"{path.name}: {e}") from e
