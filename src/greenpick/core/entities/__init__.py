from .enums import (ClassificationSource, DeploymentOption, InitState,
                    OrchestratorState, OutcomeStatus, Tier)
from .types import (ClassificationOutcome, ClassificationResult,
                    ClassificationVote, EmbeddingArray, EnvironmentalImpact,
                    FilterResult, GroupedModels, LabelScore, Model,
                    Recommendation, ReferenceEntry, TaskExample, TaskLabel,
                    TierGroup)
