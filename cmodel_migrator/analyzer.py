"""Corpus analyzer.

Walks an object corpus once, assigns every plain object to a content model,
and writes the analysis artifacts:

- ``cmodel-<n>.xml``: the generated content model object.
- ``cmodel-<n>.members.txt``: pids of the objects assigned to it.
- ``cmodel-<n>.deployments.txt``: deployment directives, if it has any.
- ``nocmodel.txt``, ``sdeps.txt``, ``sdefs.txt``: side lists.
"""

import logging
import shutil
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from . import directives as directive_codec
from .classifier import Classifier, ContentModelRecord
from .errors import ArtifactIOError, ConfigurationError
from .foxml import ObjectSerializer
from .objects import DigitalObject, ObjectKind, object_kind, upgrade_legacy_datastreams
from .store import ObjectCorpus

logger = logging.getLogger(__name__)

CMODEL_PREFIX = "cmodel-"
NO_CMODEL_LIST = "nocmodel.txt"
DEPLOYMENT_LIST = "sdeps.txt"
DEFINITION_LIST = "sdefs.txt"

SIDE_LIST_HEADERS = {
    NO_CMODEL_LIST: "The following objects will be upgraded with no content model",
    DEPLOYMENT_LIST: (
        "The following Behavior Mechanism objects will be upgraded into "
        "Service Deployments"
    ),
    DEFINITION_LIST: (
        "The following Behavior Definition objects will be upgraded into "
        "Service Definitions"
    ),
}

DEPLOYMENTS_HEADER = (
    "The following BMechs will be copied and written as FOXML1.1 service deployments",
    "with new PIDs and part names as given below",
)


def content_model_filename(ordinal: int) -> str:
    return f"{CMODEL_PREFIX}{ordinal}.xml"


def members_filename(ordinal: int) -> str:
    return f"{CMODEL_PREFIX}{ordinal}.members.txt"


def deployments_filename(ordinal: int) -> str:
    return f"{CMODEL_PREFIX}{ordinal}.deployments.txt"


@dataclass
class ContentModelSummary:
    """What the analysis produced for one content model."""

    ordinal: int
    pid: str
    members: list[str] = field(default_factory=list)
    deployments: list[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Outcome of one analysis run.

    Attributes:
        output_dir: Directory holding the artifacts.
        objects_analyzed: Number of objects read from the corpus.
        content_models: Content models in discovery order.
        unclassified: Pids written to the no-content-model list.
        mechanisms: Pids of behavior mechanisms.
        definitions: Pids of behavior definitions.
    """

    output_dir: Path
    objects_analyzed: int = 0
    content_models: list[ContentModelSummary] = field(default_factory=list)
    unclassified: list[str] = field(default_factory=list)
    mechanisms: list[str] = field(default_factory=list)
    definitions: list[str] = field(default_factory=list)


class Analyzer:
    """Drives one classification pass over a corpus.

    Example:
        >>> analyzer = Analyzer(DefaultClassifier(), FoxmlSerializer())
        >>> result = analyzer.classify_all(store, Path("analysis"))
        >>> [cm.pid for cm in result.content_models]
        ['changeme:CModel1', 'changeme:CModel2']
    """

    def __init__(
        self,
        classifier: Classifier,
        serializer: ObjectSerializer,
        kind_of: Callable[[DigitalObject], ObjectKind] = object_kind,
        upgrade_legacy: bool = True,
    ) -> None:
        """Initialize the analyzer.

        Args:
            classifier: Assigns plain objects to content models. Use a fresh
                classifier per run.
            serializer: Writes the generated content model objects.
            kind_of: Determines how each object is handled.
            upgrade_legacy: Fix legacy RELS-EXT, RELS-INT and DC MIME types
                and format URIs before classifying.
        """
        self.classifier = classifier
        self.serializer = serializer
        self.kind_of = kind_of
        self.upgrade_legacy = upgrade_legacy

    def classify_all(
        self,
        corpus: ObjectCorpus,
        output_dir: str | Path,
        clear_output_dir: bool = False,
    ) -> AnalysisResult:
        """Analyze every object in the corpus and write the artifacts.

        Args:
            corpus: Objects to analyze.
            output_dir: Directory for the artifacts. Created if missing.
            clear_output_dir: Empty a non-empty ``output_dir`` first instead
                of failing.

        Returns:
            Summary of what was written.

        Raises:
            ConfigurationError: If ``output_dir`` is not empty and
                ``clear_output_dir`` is False.
            SourceDataError: If an object cannot be classified.
            ArtifactIOError: If an artifact cannot be written. Files written
                so far are left in place.
        """
        output_dir = Path(output_dir)
        self._prepare_output_dir(output_dir, clear_output_dir)

        result = AnalysisResult(output_dir=output_dir)
        records: dict[str, ContentModelRecord] = {}
        summaries: dict[str, ContentModelSummary] = {}

        try:
            with ExitStack() as stack:
                side_lists = {
                    name: self._open_list(stack, output_dir / name, header)
                    for name, header in SIDE_LIST_HEADERS.items()
                }
                member_lists: dict[str, TextIO] = {}

                for obj in corpus:
                    if self.upgrade_legacy:
                        obj = upgrade_legacy_datastreams(obj)
                    result.objects_analyzed += 1
                    kind = self.kind_of(obj)

                    if kind == ObjectKind.PLAIN_INSTANCE:
                        record = self.classifier.classify(obj)
                        if record is None:
                            self._append(side_lists[NO_CMODEL_LIST], obj.pid)
                            result.unclassified.append(obj.pid)
                            continue
                        writer = member_lists.get(record.pid)
                        if writer is None:
                            writer = self._open_members(stack, output_dir, record)
                            member_lists[record.pid] = writer
                            records[record.pid] = record
                            summaries[record.pid] = ContentModelSummary(
                                record.ordinal, record.pid
                            )
                            result.content_models.append(summaries[record.pid])
                        self._append(writer, obj.pid)
                        summaries[record.pid].members.append(obj.pid)
                    elif kind == ObjectKind.MECHANISM:
                        self._append(side_lists[DEPLOYMENT_LIST], obj.pid)
                        result.mechanisms.append(obj.pid)
                    elif kind == ObjectKind.DEFINITION:
                        self._append(side_lists[DEFINITION_LIST], obj.pid)
                        result.definitions.append(obj.pid)
                    else:
                        self._append(side_lists[NO_CMODEL_LIST], obj.pid)
                        result.unclassified.append(obj.pid)
                    logger.debug(f"{obj.pid}: {kind.value}")

                for record in records.values():
                    path = output_dir / content_model_filename(record.ordinal)
                    logger.info(f"Serializing content model {record.pid}")
                    self.serializer.write(record.as_object(), path)

                for record in records.values():
                    directives = self.classifier.directives_for(record)
                    if not directives:
                        continue
                    path = output_dir / deployments_filename(record.ordinal)
                    logger.info(f"Writing deployment directives for content model {record.pid}")
                    self._write_text(
                        path, directive_codec.encode_all(directives, DEPLOYMENTS_HEADER)
                    )
                    summaries[record.pid].deployments = [
                        d.new_deployment_id for d in directives
                    ]
        finally:
            logger.info("Classification finished.")
            logger.info(f"Total objects analyzed: {result.objects_analyzed}")
            logger.info(f"Total content models generated: {len(records)}")
            logger.info(f"Output is in directory: {output_dir}")

        return result

    # -------------------------------------------------------------------------
    # Output helpers
    # -------------------------------------------------------------------------

    def _prepare_output_dir(self, output_dir: Path, clear_output_dir: bool) -> None:
        if output_dir.exists() and not output_dir.is_dir():
            raise ConfigurationError(f"Not a directory: {output_dir}")
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            entries = list(output_dir.iterdir())
            if entries and not clear_output_dir:
                raise ConfigurationError(f"Directory not empty: {output_dir}")
            for entry in entries:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
        except OSError as e:
            raise ArtifactIOError(output_dir, e) from e
        if entries:
            logger.info(f"Cleared {len(entries)} entries from {output_dir}")

    def _open_members(
        self, stack: ExitStack, output_dir: Path, record: ContentModelRecord
    ) -> TextIO:
        header = [f"The following objects will be assigned to {CMODEL_PREFIX}{record.ordinal}"]
        header += record.class_description.splitlines()
        return self._open_list(
            stack, output_dir / members_filename(record.ordinal), *header
        )

    def _open_list(self, stack: ExitStack, path: Path, *header: str) -> TextIO:
        try:
            writer = stack.enter_context(open(path, "w", encoding="utf-8"))
            for line in header:
                writer.write(f"# {line}\n")
        except OSError as e:
            raise ArtifactIOError(path, e) from e
        return writer

    @staticmethod
    def _append(writer: TextIO, pid: str) -> None:
        try:
            writer.write(f"{pid}\n")
        except OSError as e:
            raise ArtifactIOError(writer.name, e) from e

    @staticmethod
    def _write_text(path: Path, text: str) -> None:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ArtifactIOError(path, e) from e
