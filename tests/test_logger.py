"""Unit tests for the rich progress logger."""

from pathlib import Path
from unittest.mock import MagicMock

from cmodel_migrator.analyzer import AnalysisResult, ContentModelSummary
from cmodel_migrator.aspects import Aspect
from cmodel_migrator.generator import GenerationResult
from cmodel_migrator.logger import MigrationLogger


class TestMigrationLogger:
    """Test cases for MigrationLogger class."""

    def test_logger_initialization(self):
        """Test that logger initializes correctly."""
        logger = MigrationLogger(verbose=True)
        assert logger.verbose is True
        assert logger._current_step == 0

    def test_logger_methods_call_console_print(self):
        """Test that logger methods call console.print."""
        console = MagicMock()
        logger = MigrationLogger(console=console, verbose=True)
        result = AnalysisResult(
            output_dir=Path("analysis"),
            objects_analyzed=3,
            content_models=[
                ContentModelSummary(1, "changeme:CModel1", ["demo:A", "demo:B"], ["D1"])
            ],
        )

        logger.start("Analysis")
        logger.step_configuring(frozenset(Aspect))
        logger.step_analyzing("objects/")
        logger.show_content_models(result)
        logger.complete_analysis(result)
        logger.step_reading_directives("analysis/")
        logger.step_generating()
        logger.deployment_written("D1", "cmodel-1.deployment1.xml")
        logger.complete_generation(GenerationResult(content_models=1))
        logger.error("Test error")
        logger.warning("Test warning")

        assert console.print.call_count > 0

    def test_configuring_lists_aspects_in_order(self):
        console = MagicMock()
        logger = MigrationLogger(console=console)
        logger.step_configuring({Aspect.MECHANISM_IDS, Aspect.DEFINITION_IDS})
        printed = [str(call.args[0]) for call in console.print.call_args_list if call.args]
        assert any("BDefPIDs, BMechPIDs" in text for text in printed)

    def test_step_counter(self):
        console = MagicMock()
        logger = MigrationLogger(console=console)
        logger.step_reading_directives("analysis/")
        logger.step_generating()
        console.print.assert_any_call("[bold][2/2][/bold] Generating service deployments...")

    def test_info_only_logs_when_verbose(self):
        """Test that info only logs when verbose is True."""
        console = MagicMock()
        MigrationLogger(console=console, verbose=False).info("Test info")
        assert console.print.call_count == 0

        MigrationLogger(console=console, verbose=True).info("Test info")
        assert console.print.call_count == 1
