"""Errors that abort a pipeline run."""


class PipelineError(Exception):
    """Base class for fatal pipeline errors."""


class FatalIOError(PipelineError):
    """A stream could not be opened, read or written."""


class RecordDecodeError(PipelineError):
    """A record in an input stream is malformed."""
