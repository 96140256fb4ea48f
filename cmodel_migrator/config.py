"""Run configuration.

Settings are pydantic models so a YAML file, command-line options and code
all go through the same validation. Example file::

    classifier:
      ignore_aspects: [DatastreamIDs]
      ignore_datastream_ids: [AUDIT]
      pid_prefix: "demo:CModel"
      part_renames:
        FULL_SIZE: FULL
    analyzer:
      source_dir: ./objects
      output_dir: ./analysis
    generator:
      explicit_basic_model: true
"""

import logging
import pathlib
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .aspects import Aspect, parse_aspects, resolve_active_aspects
from .classifier import DefaultClassifier
from .errors import ConfigurationError
from .pid import DEFAULT_PID_PREFIX, SimplePidAllocator

logger = logging.getLogger(__name__)


def _split_names(value: Any) -> Any:
    # Space-delimited strings are accepted wherever a list of names is.
    if isinstance(value, str):
        return value.split()
    return value


class ClassifierSettings(BaseModel):
    """How objects are grouped into content models."""

    model_config = ConfigDict(extra="forbid")

    aspects: list[Aspect] | None = Field(
        None, description="Aspects to classify by (defaults to all)"
    )
    ignore_aspects: list[Aspect] = Field(
        default_factory=list, description="Aspects to leave out of classification"
    )
    ignore_datastream_ids: list[str] = Field(
        default_factory=list,
        description="Datastream ids left out of signatures unless bound to a mechanism",
    )
    pid_prefix: str = Field(DEFAULT_PID_PREFIX, description="Prefix for content model pids")
    pid_start: int = Field(1, ge=0, description="Number of the first content model pid")
    explicit_basic_model: bool = Field(
        False, description="Declare FedoraObject-3.0 in content model RELS-EXT"
    )
    part_renames: dict[str, str] = Field(
        default_factory=dict, description="Part renames written into every directive"
    )
    rename_parts_to_datastreams: bool = Field(
        False, description="Rename each part to the datastream bound to it"
    )

    @field_validator("aspects", "ignore_aspects", mode="before")
    @classmethod
    def _parse_aspects(cls, value: Any) -> Any:
        if value is None:
            return None
        return sorted(parse_aspects(_split_names(value)), key=list(Aspect).index)

    @field_validator("ignore_datastream_ids", mode="before")
    @classmethod
    def _parse_ids(cls, value: Any) -> Any:
        return _split_names(value)


class AnalyzerSettings(BaseModel):
    """Where the analysis reads from and writes to."""

    model_config = ConfigDict(extra="forbid")

    source_dir: pathlib.Path | None = Field(None, description="Directory of legacy objects")
    output_dir: pathlib.Path | None = Field(None, description="Directory for analysis output")
    clear_output_dir: bool = Field(
        False, description="Empty a non-empty output directory instead of failing"
    )
    include_patterns: list[str] = Field(
        default_factory=lambda: ["*.xml"], description="Object files to read"
    )
    ignore_patterns: list[str] = Field(
        default_factory=lambda: [".*"], description="Files and directories to skip"
    )


class GeneratorSettings(BaseModel):
    """Where the generation reads from and writes to."""

    model_config = ConfigDict(extra="forbid")

    analysis_dir: pathlib.Path | None = Field(None, description="Output of the analysis run")
    object_dir: pathlib.Path | None = Field(
        None, description="Directory of legacy objects to copy mechanisms from"
    )
    explicit_basic_model: bool = Field(
        False, description="Declare FedoraObject-3.0 in deployment RELS-EXT"
    )


class MigrationConfig(BaseModel):
    """Complete configuration of both phases."""

    model_config = ConfigDict(extra="forbid")

    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    analyzer: AnalyzerSettings = Field(default_factory=AnalyzerSettings)
    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)


def load_config(file_path: str | pathlib.Path) -> MigrationConfig:
    """Load configuration from a YAML file.

    An empty file yields the defaults.

    Args:
        file_path: Path to the YAML file.

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML or does
            not validate.
    """
    file_path = pathlib.Path(file_path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {file_path}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e

    if data is None:
        logger.warning(f"Configuration file is empty: {file_path}")
        return MigrationConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {file_path} must be a mapping")
    return parse_config(data, source=str(file_path))


def parse_config(data: dict[str, Any], source: str = "configuration") -> MigrationConfig:
    """Validate an already-loaded configuration mapping."""
    try:
        return MigrationConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {source}: {e}") from e


def create_classifier(settings: ClassifierSettings) -> DefaultClassifier:
    """Build the classifier described by ``settings``."""
    return DefaultClassifier(
        aspects=resolve_active_aspects(settings.aspects, settings.ignore_aspects),
        pid_allocator=SimplePidAllocator(settings.pid_prefix, settings.pid_start),
        ignore_datastream_ids=settings.ignore_datastream_ids,
        explicit_basic_model=settings.explicit_basic_model,
        part_renames=settings.part_renames,
        rename_parts_to_datastreams=settings.rename_parts_to_datastreams,
    )
