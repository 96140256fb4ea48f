"""Content-model migrator for legacy Fedora repositories.

Analyzes a corpus of legacy digital objects, groups plain data objects into
generated content models by a configurable set of structural aspects, and
clones legacy behavior mechanisms into service deployments for them.

The migration runs in two phases:
- Analysis: ``Analyzer`` with a ``Classifier`` writes content models,
  membership lists and deployment directives.
- Generation: ``Generator`` reads the directives back and writes the new
  service deployments.
"""

from .analyzer import AnalysisResult, Analyzer, ContentModelSummary
from .aspects import (
    ASPECT_DEPENDENCIES,
    MANDATORY_ASPECTS,
    Aspect,
    parse_aspects,
    resolve_active_aspects,
)
from .classifier import Classifier, ContentModelRecord, DefaultClassifier
from .config import (
    AnalyzerSettings,
    ClassifierSettings,
    GeneratorSettings,
    MigrationConfig,
    create_classifier,
    load_config,
)
from .directives import Directive, decode, encode, encode_all
from .errors import (
    ArtifactIOError,
    ConfigurationError,
    DirectiveSyntaxError,
    MigrationError,
    SourceDataError,
)
from .foxml import FoxmlSerializer, ObjectSerializer
from .generator import DeploymentGenerator, GenerationResult, Generator
from .logger import MigrationLogger
from .objects import (
    Datastream,
    DatastreamBinding,
    DigitalObject,
    Disseminator,
    ObjectKind,
    object_kind,
    upgrade_legacy_datastreams,
)
from .pid import PidAllocator, SimplePidAllocator
from .signature import WILDCARD, Exact, Signature, Wildcard
from .store import DirectoryObjectStore, InMemoryObjectStore, ObjectCorpus, ObjectStore
from .stylesheet import upgrade_stylesheet
from .transform import PartRenameTransform, StructuralTransform

__all__ = [
    # Aspects
    "Aspect",
    "MANDATORY_ASPECTS",
    "ASPECT_DEPENDENCIES",
    "parse_aspects",
    "resolve_active_aspects",
    # Objects
    "Datastream",
    "DatastreamBinding",
    "Disseminator",
    "DigitalObject",
    "ObjectKind",
    "object_kind",
    "upgrade_legacy_datastreams",
    # Signature
    "Signature",
    "Wildcard",
    "WILDCARD",
    "Exact",
    # PID allocation
    "PidAllocator",
    "SimplePidAllocator",
    # Classifier
    "Classifier",
    "DefaultClassifier",
    "ContentModelRecord",
    # Directives
    "Directive",
    "encode",
    "encode_all",
    "decode",
    # Analyzer
    "Analyzer",
    "AnalysisResult",
    "ContentModelSummary",
    # Generator
    "DeploymentGenerator",
    "Generator",
    "GenerationResult",
    "upgrade_stylesheet",
    "StructuralTransform",
    "PartRenameTransform",
    # Storage
    "ObjectSerializer",
    "FoxmlSerializer",
    "ObjectCorpus",
    "ObjectStore",
    "DirectoryObjectStore",
    "InMemoryObjectStore",
    # Configuration
    "MigrationConfig",
    "ClassifierSettings",
    "AnalyzerSettings",
    "GeneratorSettings",
    "load_config",
    "create_classifier",
    # Errors
    "MigrationError",
    "ConfigurationError",
    "DirectiveSyntaxError",
    "SourceDataError",
    "ArtifactIOError",
    # Logger
    "MigrationLogger",
]
