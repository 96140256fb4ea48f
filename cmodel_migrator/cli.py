"""CLI interface for the content-model migrator.

This module provides a Click-based command-line interface for the two
migration phases.

Usage:
    python -m cmodel_migrator analyze objects/ analysis/
    python -m cmodel_migrator analyze objects/ analysis/ -i DatastreamIDs -i MIMETypes
    python -m cmodel_migrator generate analysis/ objects/
    python -m cmodel_migrator analyze --config migration.yaml
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from .analyzer import Analyzer
from .config import MigrationConfig, create_classifier, load_config, parse_config
from .errors import ConfigurationError, MigrationError
from .foxml import FoxmlSerializer
from .generator import DeploymentGenerator, Generator
from .logger import MigrationLogger
from .store import DirectoryObjectStore
from .transform import PartRenameTransform


def _setup_logging(console: Console, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load(config_path: Path | None) -> MigrationConfig:
    return load_config(config_path) if config_path else MigrationConfig()


@click.group()
def main() -> None:
    """Migrate legacy Fedora objects to content models.

    Run ``analyze`` over the legacy objects first, review (and optionally
    edit the deployment directives in) the output directory, then run
    ``generate`` to produce the service deployments.
    """


@main.command()
@click.argument(
    "source_dir",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument("output_dir", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file (command-line options take precedence)",
)
@click.option(
    "--ignore-aspect",
    "-i",
    "ignore_aspects",
    multiple=True,
    help="Aspect to leave out of classification (repeatable)",
)
@click.option(
    "--ignore-datastream",
    "-d",
    "ignore_datastreams",
    multiple=True,
    help="Datastream id to leave out of signatures (repeatable)",
)
@click.option("--pid-prefix", "-p", help="Prefix for generated content model pids")
@click.option(
    "--clear-output-dir",
    is_flag=True,
    default=False,
    help="Empty OUTPUT_DIR first if it is not empty",
)
@click.option(
    "--explicit-basic-model",
    is_flag=True,
    default=False,
    help="Declare FedoraObject-3.0 in content model RELS-EXT",
)
@click.option(
    "--verbose/--quiet",
    "-v/-q",
    default=True,
    help="Verbose output (default: verbose)",
)
def analyze(
    source_dir: Path | None,
    output_dir: Path | None,
    config_path: Path | None,
    ignore_aspects: tuple[str, ...],
    ignore_datastreams: tuple[str, ...],
    pid_prefix: str | None,
    clear_output_dir: bool,
    explicit_basic_model: bool,
    verbose: bool,
) -> None:
    """Group legacy objects into content models.

    SOURCE_DIR holds the legacy FOXML objects; OUTPUT_DIR receives the
    content models, membership lists and deployment directives.

    Examples:

        # Classify by every aspect
        python -m cmodel_migrator analyze objects/ analysis/

        # Ignore datastream ids (and with them MIME types and format URIs)
        python -m cmodel_migrator analyze objects/ analysis/ -i DatastreamIDs
    """
    console = Console()
    logger = MigrationLogger(console=console, verbose=verbose)
    _setup_logging(console, verbose)

    try:
        logger.start("Analysis")
        config = _load(config_path)

        overrides = config.model_dump(exclude_unset=True)
        classifier_overrides = overrides.setdefault("classifier", {})
        if ignore_aspects:
            classifier_overrides["ignore_aspects"] = [
                *config.classifier.ignore_aspects,
                *ignore_aspects,
            ]
        if ignore_datastreams:
            classifier_overrides["ignore_datastream_ids"] = [
                *config.classifier.ignore_datastream_ids,
                *ignore_datastreams,
            ]
        if pid_prefix:
            classifier_overrides["pid_prefix"] = pid_prefix
        if explicit_basic_model:
            classifier_overrides["explicit_basic_model"] = True
        config = parse_config(overrides, source="command-line options")

        source_dir = source_dir or config.analyzer.source_dir
        output_dir = output_dir or config.analyzer.output_dir
        if source_dir is None or output_dir is None:
            raise ConfigurationError(
                "SOURCE_DIR and OUTPUT_DIR are required "
                "(as arguments or under 'analyzer' in the config file)"
            )

        classifier = create_classifier(config.classifier)
        logger.step_configuring(classifier.aspects)

        serializer = FoxmlSerializer()
        store = DirectoryObjectStore(
            source_dir,
            serializer,
            include_patterns=config.analyzer.include_patterns,
            ignore_patterns=config.analyzer.ignore_patterns,
        )
        logger.step_analyzing(source_dir)
        result = Analyzer(classifier, serializer).classify_all(
            store,
            output_dir,
            clear_output_dir=clear_output_dir or config.analyzer.clear_output_dir,
        )
        logger.show_content_models(result)
        logger.complete_analysis(result)

    except MigrationError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\nAnalysis cancelled.")
        sys.exit(130)


@main.command()
@click.argument(
    "analysis_dir",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument(
    "object_dir",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file (command-line options take precedence)",
)
@click.option(
    "--explicit-basic-model",
    is_flag=True,
    default=False,
    help="Declare FedoraObject-3.0 in deployment RELS-EXT",
)
@click.option(
    "--verbose/--quiet",
    "-v/-q",
    default=True,
    help="Verbose output (default: verbose)",
)
def generate(
    analysis_dir: Path | None,
    object_dir: Path | None,
    config_path: Path | None,
    explicit_basic_model: bool,
    verbose: bool,
) -> None:
    """Generate service deployments from an analysis directory.

    ANALYSIS_DIR is the OUTPUT_DIR of a previous ``analyze`` run;
    OBJECT_DIR holds the legacy objects the mechanisms are copied from.
    Deployments are written next to the directives as
    cmodel-<n>.deployment<k>.xml.
    """
    console = Console()
    logger = MigrationLogger(console=console, verbose=verbose)
    _setup_logging(console, verbose)

    try:
        logger.start("Generation")
        config = _load(config_path)
        analysis_dir = analysis_dir or config.generator.analysis_dir
        object_dir = object_dir or config.generator.object_dir
        if analysis_dir is None or object_dir is None:
            raise ConfigurationError(
                "ANALYSIS_DIR and OBJECT_DIR are required "
                "(as arguments or under 'generator' in the config file)"
            )

        logger.step_reading_directives(analysis_dir)
        serializer = FoxmlSerializer()
        generator = Generator(
            store=DirectoryObjectStore(
                object_dir,
                serializer,
                include_patterns=config.analyzer.include_patterns,
                ignore_patterns=config.analyzer.ignore_patterns,
            ),
            analysis_dir=analysis_dir,
            serializer=serializer,
            deployment_generator=DeploymentGenerator(
                PartRenameTransform(),
                explicit_basic_model=explicit_basic_model
                or config.generator.explicit_basic_model,
            ),
        )

        logger.step_generating()
        result = generator.generate_all()
        for pid, path in result.deployments.items():
            logger.deployment_written(pid, path.name)
        if not result.deployments:
            logger.warning("No deployment directives found.")
        logger.complete_generation(result)

    except MigrationError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\nGeneration cancelled.")
        sys.exit(130)


if __name__ == "__main__":
    main()
