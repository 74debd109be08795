"""
Exception hierarchy for the GreenPick model advisor.

Classifier failures derive from `ClassifierError` so the orchestrator can
convert them into degraded outcomes at a single boundary. Low confidence and
empty catalog segments are not errors and have no exception class.
"""


class GreenPickError(Exception):
    """Base class for all GreenPick errors."""


class ClassifierError(GreenPickError):
    """Base class for failures of a classifier."""


class EncoderUnavailable(ClassifierError):
    """The embedding backend could not be initialized."""


class DimensionMismatch(ClassifierError, ValueError):
    """Two vectors (or a vector and a matrix) have different dimensions."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding dimension mismatch: expected {expected}, got {actual}")


class ClassifierNotReady(ClassifierError):
    """Classification was attempted before initialization completed."""


class ClassificationFailed(ClassifierError):
    """The encoder failed while embedding a query."""


class CatalogValidationError(GreenPickError, ValueError):
    """A task taxonomy or model catalog failed validation at load time."""
