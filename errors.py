"""Exception classes for the matrix enhancer.

Exception Hierarchy:
    MatrixEnhancerError (base)
    ├── ImageDecodeError (undecodable or unsupported input, the only fatal error)
    └── PipelineCancelled (cancel event set between stages)
"""

from __future__ import annotations


class MatrixEnhancerError(Exception):
    """Base class for all matrix enhancer errors."""


class ImageDecodeError(MatrixEnhancerError, ValueError):
    """Input could not be decoded into a usable image.

    Attributes:
        source: Description of the input (file path or input type).
    """

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source

    def __str__(self) -> str:
        message = super().__str__()
        if self.source:
            return f"{message} ({self.source})"
        return message


class PipelineCancelled(MatrixEnhancerError):
    """Enhancement was cancelled before a stage started.

    Attributes:
        stage: Name of the stage that was about to run.
    """

    def __init__(self, stage: str):
        super().__init__(f"Enhancement cancelled before stage '{stage}'")
        self.stage = stage
