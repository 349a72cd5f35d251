from __future__ import annotations

"""Exception hierarchy for the import pipeline.

File-level failures derive from ImportPipelineError; their ``str()`` is what
ends up in ``processes_file.message`` when a batch is marked ``error``.
Row-level validation problems are never raised, they are recorded as data on
the ImportRow.
"""

__all__ = [
    "ImportPipelineError",
    "ParseError",
    "MissingHeaderError",
    "HeaderValidationError",
    "PersistenceError",
    "BatchNotFoundError",
    "IntakeError",
    "EmptyUploadError",
    "UnsupportedFileTypeError",
    "ConfigError",
    "ProcessingError",
]


class ImportPipelineError(Exception):
    """Base class for errors that fail a whole batch file."""

    error_type = "UNEXPECTED_ERROR"


class ParseError(ImportPipelineError):
    """Raised when the uploaded binary is not a well-formed tabular document."""

    error_type = "PARSE_ERROR"


class MissingHeaderError(ImportPipelineError):
    """Raised when no non-empty row exists to act as header."""

    error_type = "HEADER_ERROR"


class HeaderValidationError(ImportPipelineError):
    """Raised when mandatory columns are absent from the header row."""

    error_type = "HEADER_ERROR"

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("\n".join(self.messages))


class PersistenceError(ImportPipelineError):
    """Raised when the batch transaction fails and was rolled back."""

    error_type = "PERSISTENCE_ERROR"


class BatchNotFoundError(ImportPipelineError):
    pass


class IntakeError(Exception):
    """Base class for upload rejections (before a batch enters ``waiting``)."""


class EmptyUploadError(IntakeError):
    pass


class UnsupportedFileTypeError(IntakeError):
    pass


class ConfigError(Exception):
    """Raised when config/import.yml is missing, malformed or fails its schema."""


class ProcessingError(Exception):
    """Fatal error that prevents the run itself (e.g. claiming batches)."""
