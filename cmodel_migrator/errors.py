"""Custom exceptions for the content-model migrator."""


class MigrationError(Exception):
    """Base exception for content-model migration errors."""

    pass


class ConfigurationError(MigrationError, ValueError):
    """Raised when the run is misconfigured.

    Covers unknown aspect names, unusable configuration files or output
    directories, and deployment directives the line format cannot carry.
    """

    pass


class DirectiveSyntaxError(ConfigurationError):
    """Raised when a deployment directive file is malformed."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class SourceDataError(MigrationError):
    """Raised when a source object lacks data needed for classification or generation."""

    pass


class ArtifactIOError(MigrationError, OSError):
    """Raised when an output or input artifact cannot be read or written."""

    def __init__(self, path, cause: OSError | None = None) -> None:
        self.path = path
        detail = f": {cause.strerror or cause}" if cause is not None else ""
        super().__init__(f"I/O failure on {path}{detail}")
