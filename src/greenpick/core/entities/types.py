"""
Core type definitions for the GreenPick model advisor.

This module defines the data structures used throughout the system for
representing task labels, reference embeddings, classification results and
catalog models. It includes Pydantic models for data validation and
serialization.
"""

from typing import Iterator, List, Optional, Tuple, TypeAlias, Union

import numpy as np
from numpy.typing import NDArray
from torch import Tensor
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import (ClassificationSource, DeploymentOption, OutcomeStatus,
                    Tier)

# Alias for all types of embeddings
EmbeddingArray: TypeAlias = Union[List[float], List[List[float]], NDArray, Tensor]


class TaskLabel(BaseModel):
    """
    A (category, subcategory) pair from the task taxonomy.

    Attributes:
        category: Top-level task category (e.g. 'computer_vision').
        subcategory: Task within the category (e.g. 'image_classification').
    """
    category: str
    subcategory: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.category}/{self.subcategory}"


class TaskExample(BaseModel):
    """
    A labeled example task description taken from the taxonomy.
    """
    category: str
    subcategory: str
    text: str

    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> TaskLabel:
        return TaskLabel(category=self.category, subcategory=self.subcategory)


class ReferenceEntry(BaseModel):
    """
    A precomputed, normalized example embedding used as a comparison anchor.

    Attributes:
        embedding: L2-normalized, read-only vector.
        category: Category of the example it was computed from.
        subcategory: Subcategory of the example it was computed from.
    """
    embedding: np.ndarray
    category: str
    subcategory: str

    # Allow non-standard types like NDArray
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @property
    def label(self) -> TaskLabel:
        return TaskLabel(category=self.category, subcategory=self.subcategory)


class ClassificationVote(BaseModel):
    category: str
    subcategory: str
    similarity: float

    @property
    def label(self) -> TaskLabel:
        return TaskLabel(category=self.category, subcategory=self.subcategory)


class LabelScore(BaseModel):
    """
    One row of a vote breakdown: the aggregated weight of a label.

    Attributes:
        category: Category of the label.
        subcategory: Subcategory of the label.
        weight: Summed score the label received.
        votes: Number of votes (or matches) that contributed to the weight.
    """
    category: str
    subcategory: str
    weight: float
    votes: int = 0

    @property
    def label(self) -> TaskLabel:
        return TaskLabel(category=self.category, subcategory=self.subcategory)


class ClassificationResult(BaseModel):
    """
    The prediction of a single classifier.

    Attributes:
        category: Winning category.
        subcategory: Winning subcategory.
        confidence: Score of the winner on a normalized 0-1 scale.
        vote_breakdown: Per-label scores, highest first.
        votes: The individual top-K votes (embedding classifier only).
        source: Strategy that produced the result.
        candidates: Alternative labels worth offering the user, best first.
    """
    category: str
    subcategory: str
    confidence: float = Field(ge=0.0, le=1.0)
    vote_breakdown: List[LabelScore] = Field(default_factory=list)
    votes: List[ClassificationVote] = Field(default_factory=list)
    source: ClassificationSource
    candidates: List[TaskLabel] = Field(default_factory=list)

    @property
    def label(self) -> TaskLabel:
        return TaskLabel(category=self.category, subcategory=self.subcategory)

    @property
    def agreeing_votes(self) -> int:
        """Number of individual votes cast for the winning label."""
        return sum(1 for vote in self.votes
                   if vote.category == self.category and vote.subcategory == self.subcategory)


class ClassificationOutcome(BaseModel):
    """
    The orchestrator's answer to a classification request.

    Attributes:
        status: Whether the result can be used or the user has to choose.
        result: The accepted (or best rejected) classifier result, if any.
        candidates: Labels to present when clarification is needed.
        reason: Human-readable explanation for degraded outcomes.
    """
    status: OutcomeStatus
    result: Optional[ClassificationResult] = None
    candidates: List[TaskLabel] = Field(default_factory=list)
    reason: Optional[str] = None

    @property
    def is_confident(self) -> bool:
        return self.status == OutcomeStatus.CONFIDENT


class Model(BaseModel):
    """
    A catalog model record.

    The tier is always derived from the size; a record whose tier disagrees
    with its size is rejected.
    """
    id: str
    name: Optional[str] = None
    hugging_face_id: Optional[str] = Field(default=None, alias="huggingFaceId")
    size_mb: float = Field(gt=0, alias="sizeMB")
    tier: Tier
    accuracy: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    deployment_options: List[DeploymentOption] = Field(default_factory=list, alias="deploymentOptions")
    frameworks: List[str] = Field(default_factory=list)
    category: str
    subcategory: str

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @model_validator(mode="after")
    def _check_tier_matches_size(self) -> "Model":
        expected = Tier.from_size(self.size_mb)
        if self.tier != expected:
            raise ValueError(
                f"Model '{self.id}' is {self.size_mb} MB which is tier "
                f"'{expected.value}', not '{self.tier.value}'")
        return self


class FilterResult(BaseModel):
    filtered: List[Model]
    total: int
    hidden: int


class TierGroup(BaseModel):
    """
    Ranked models of one tier plus the number hidden by filters.
    """
    models: List[Model] = Field(default_factory=list)
    hidden: int = 0


class GroupedModels(BaseModel):
    """
    Models grouped by tier, each tier ranked, with filter bookkeeping.

    Every tier is always present, even when empty.
    """
    lightweight: TierGroup = Field(default_factory=TierGroup)
    standard: TierGroup = Field(default_factory=TierGroup)
    advanced: TierGroup = Field(default_factory=TierGroup)
    xlarge: TierGroup = Field(default_factory=TierGroup)
    total_hidden: int = 0
    total_shown: int = 0

    def tier(self, tier: Tier) -> TierGroup:
        return getattr(self, tier.value)

    def iter_tiers(self) -> Iterator[Tuple[Tier, TierGroup]]:
        for tier in Tier.ordered():
            yield tier, self.tier(tier)

    def shown_models(self) -> List[Model]:
        return [model for _, group in self.iter_tiers() for model in group.models]


class EnvironmentalImpact(BaseModel):
    """
    Size-based environmental impact estimate of a model.

    Attributes:
        environmental_score: 1 (low) to 3 (high).
        size_mb: Model size the score was derived from.
        score_label: Display label for the score.
        tier: Impact tier name.
    """
    environmental_score: int
    size_mb: float
    score_label: str
    tier: str


class Recommendation(BaseModel):
    outcome: ClassificationOutcome
    models: Optional[GroupedModels] = None
    top_picks: List[Model] = Field(default_factory=list)
