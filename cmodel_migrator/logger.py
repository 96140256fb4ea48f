"""Rich-based progress logger for the migration commands.

Library modules log through the standard ``logging`` module; this logger
renders the user-facing progress of the ``analyze`` and ``generate``
commands.
"""

from collections.abc import Iterable
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .analyzer import AnalysisResult
from .aspects import Aspect
from .generator import GenerationResult


class MigrationLogger:
    """Rich-based logger for migration progress.

    Example:
        >>> logger = MigrationLogger()
        >>> logger.start("Analysis")
        >>> logger.step_configuring(aspects)
        >>> logger.step_analyzing("objects/")
        >>> logger.show_content_models(result)
        >>> logger.complete_analysis(result)
    """

    def __init__(self, console: Console | None = None, verbose: bool = True) -> None:
        """Initialize the MigrationLogger.

        Args:
            console: Optional Rich Console instance. Creates new one if not provided.
            verbose: If True, show detailed output. If False, minimal output.
        """
        self.console = console or Console()
        self.verbose = verbose
        self._current_step = 0
        self._total_steps = 3

    def start(self, phase: str) -> None:
        """Display the tool header.

        Args:
            phase: Name of the phase being run, e.g. "Analysis".
        """
        self.console.print()
        self.console.print(
            Panel.fit(
                f"[bold cyan]Content Model Migrator: {phase}[/bold cyan]",
                border_style="cyan",
            )
        )
        self.console.print()

    def step_configuring(self, aspects: Iterable[Aspect]) -> None:
        """Log the aspects objects will be classified by."""
        self._current_step = 1
        self._print_step("Resolving classification aspects...")
        names = ", ".join(a.value for a in sorted(aspects, key=list(Aspect).index))
        self.console.print(f"      [green]✓[/green] Classifying by: {names}")

    def step_analyzing(self, source: str | Path) -> None:
        """Log the start of the corpus pass."""
        self._current_step = 2
        self.console.print()
        self._print_step("Analyzing objects...")
        if self.verbose:
            self.console.print(f"      [dim]Source: {source}[/dim]")

    def show_content_models(self, result: AnalysisResult) -> None:
        """Display the generated content models in a table.

        Args:
            result: Outcome of the analysis run.
        """
        self._current_step = 3
        self.console.print()
        self._print_step("Writing content models...")
        if not result.content_models:
            self.console.print("      [dim](no content models generated)[/dim]")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("#", justify="right")
        table.add_column("Content model", style="cyan")
        table.add_column("Members", justify="right")
        table.add_column("Deployments", style="magenta")

        for summary in result.content_models:
            table.add_row(
                str(summary.ordinal),
                summary.pid,
                str(len(summary.members)),
                ", ".join(summary.deployments) or "-",
            )

        self.console.print()
        self.console.print(table)
        self.console.print()

    def step_reading_directives(self, analysis_dir: str | Path) -> None:
        """Log the start of the generation phase."""
        self._current_step = 1
        self._total_steps = 2
        self._print_step("Reading content models and directives...")
        if self.verbose:
            self.console.print(f"      [dim]Directory: {analysis_dir}[/dim]")

    def step_generating(self) -> None:
        """Log the start of deployment generation."""
        self._current_step = 2
        self.console.print()
        self._print_step("Generating service deployments...")

    def deployment_written(self, pid: str, path: str | Path) -> None:
        """Log one written deployment."""
        self.console.print(f"      [green]✓[/green] {pid} → {path}")

    def complete_analysis(self, result: AnalysisResult) -> None:
        """Display the analysis summary."""
        self.console.print(
            Panel(
                f"[green]✓ Analysis complete![/green]\n"
                f"[dim]Objects analyzed: {result.objects_analyzed}[/dim]\n"
                f"[dim]Content models: {len(result.content_models)}[/dim]\n"
                f"[dim]Mechanisms: {len(result.mechanisms)}, "
                f"definitions: {len(result.definitions)}, "
                f"without content model: {len(result.unclassified)}[/dim]\n"
                f"[dim]Output: {result.output_dir}[/dim]",
                border_style="green",
            )
        )
        self.console.print()

    def complete_generation(self, result: GenerationResult) -> None:
        """Display the generation summary."""
        self.console.print()
        self.console.print(
            Panel(
                f"[green]✓ Generation complete![/green]\n"
                f"[dim]Content models read: {result.content_models}[/dim]\n"
                f"[dim]Service deployments written: {len(result.deployments)}[/dim]\n"
                f"[dim]Stylesheets written: {len(result.stylesheets)}[/dim]",
                border_style="green",
            )
        )
        self.console.print()

    def error(self, message: str) -> None:
        """Display an error message.

        Args:
            message: The error message to display.
        """
        self.console.print(f"\n[red]✗ Error: {message}[/red]\n")

    def warning(self, message: str) -> None:
        """Display a warning message.

        Args:
            message: The warning message to display.
        """
        self.console.print(f"      [yellow]⚠ {message}[/yellow]")

    def info(self, message: str) -> None:
        """Display an info message.

        Args:
            message: The info message to display.
        """
        if self.verbose:
            self.console.print(f"      [dim]{message}[/dim]")

    def _print_step(self, message: str) -> None:
        """Print a step header.

        Args:
            message: The step message to display.
        """
        self.console.print(
            f"[bold][{self._current_step}/{self._total_steps}][/bold] {message}"
        )
