"""
Core entity enumerations for the GreenPick model advisor.

This module defines enumeration classes used throughout the system for
model tiers, deployment targets and the lifecycle states of the classifiers.
"""

from enum import Enum

from ..constants import ADVANCED_MAX_MB, LIGHTWEIGHT_MAX_MB, STANDARD_MAX_MB


class Tier(Enum):
    """
    Size-based model buckets, ordered from most to least efficient.

    Attributes:
        LIGHTWEIGHT: Models up to 500 MB
        STANDARD: Models up to 4 GB
        ADVANCED: Models up to 20 GB
        XLARGE: Anything larger
    """
    LIGHTWEIGHT = "lightweight"
    STANDARD    = "standard"
    ADVANCED    = "advanced"
    XLARGE      = "xlarge"

    @property
    def priority(self) -> int:
        """Ranking priority, lower ranks first."""
        return _TIER_ORDER.index(self)

    @classmethod
    def ordered(cls) -> list:
        return list(_TIER_ORDER)

    @classmethod
    def from_size(cls, size_mb: float) -> "Tier":
        """Derive the tier from a model size in megabytes."""
        if size_mb <= LIGHTWEIGHT_MAX_MB:
            return cls.LIGHTWEIGHT
        if size_mb <= STANDARD_MAX_MB:
            return cls.STANDARD
        if size_mb <= ADVANCED_MAX_MB:
            return cls.ADVANCED
        return cls.XLARGE


_TIER_ORDER = (Tier.LIGHTWEIGHT, Tier.STANDARD, Tier.ADVANCED, Tier.XLARGE)


class DeploymentOption(Enum):
    """
    Runtime environments a model can be deployed to.
    """
    BROWSER = "browser"
    MOBILE  = "mobile"
    EDGE    = "edge"
    CLOUD   = "cloud"
    SERVER  = "server"


class InitState(Enum):
    """
    Progress states of the embedding classifier initialization.

    Attributes:
        IDLE: Initialization has not been started
        DOWNLOADING: Fetching encoder weights
        LOADING: Loading the encoder into memory
        COMPUTING: Encoding the reference examples
        READY: Classification may be attempted
        ERROR: Initialization failed; the classifier is unusable
    """
    IDLE        = "idle"
    DOWNLOADING = "downloading"
    LOADING     = "loading"
    COMPUTING   = "computing"
    READY       = "ready"
    ERROR       = "error"


class OrchestratorState(Enum):
    UNINITIALIZED       = "uninitialized"
    READY_EMBEDDING     = "ready_embedding"
    READY_FALLBACK      = "ready_fallback"
    CLASSIFYING         = "classifying"
    CONFIDENT           = "confident"
    NEEDS_CLARIFICATION = "needs_clarification"
    ERROR               = "error"


class ClassificationSource(Enum):
    """
    Which strategy produced a classification result.
    """
    EMBEDDING = "embedding"
    JACCARD   = "jaccard"
    NGRAM     = "ngram"
    PRIORITY  = "priority"
    USER      = "user"


class OutcomeStatus(Enum):
    CONFIDENT           = "confident"
    NEEDS_CLARIFICATION = "needs_clarification"
    ERROR               = "error"
