"""
Exception taxonomy for the dataset generation pipeline.
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(PipelineError):
    """Raised when the pipeline configuration holds invalid values."""


class InferenceError(PipelineError):
    """A call to a generative/judgment backend failed in transport."""

    def __init__(self, message: str, provider: str = "unknown", cause: Exception = None):
        super().__init__(message)
        self.provider = provider
        self.cause = cause


class ResponseParseError(PipelineError, ValueError):
    """A backend response held no usable structured content."""


class ZeroYieldError(PipelineError):
    """Both generation stages produced no pairs, so no dataset can be built."""
