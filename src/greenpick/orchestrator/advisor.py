"""
Advisor facade: from a task description to a tiered model recommendation.
"""

import asyncio
import logging
from typing import Optional

from ..core.constants import DEFAULT_MAX_RESULTS
from ..core.entities import EnvironmentalImpact, Model, Recommendation
from ..modules.selection import EnvironmentalImpactCalculator, ModelSelector
from ..modules.selection.model_selector import DeploymentTarget
from .classification import ClassificationOrchestrator

logger = logging.getLogger(__name__)


class Advisor:
    """
    Combines task classification with model selection.

    Args:
        orchestrator: Classification orchestrator.
        selector: Model selector over the model catalog.
        impact_calculator: Environmental impact scorer.
        max_results: Number of top picks listed with each recommendation.
    """
    def __init__(self,
                 orchestrator: ClassificationOrchestrator,
                 selector: ModelSelector,
                 impact_calculator: Optional[EnvironmentalImpactCalculator] = None,
                 max_results: int = DEFAULT_MAX_RESULTS):
        if max_results <= 0:
            raise ValueError(f"max_results must be positive, got {max_results}")

        self.orchestrator = orchestrator
        self.selector = selector
        self.impact_calculator = impact_calculator or EnvironmentalImpactCalculator()
        self.max_results = max_results

    async def start(self) -> None:
        """Initializes the embedding classifier, if any."""
        await self.orchestrator.start()

    def launch(self) -> asyncio.Task:
        """Starts initialization in the background and returns its task."""
        return self.orchestrator.launch()

    async def recommend(self,
                        text: Optional[str] = None,
                        category: Optional[str] = None,
                        subcategory: Optional[str] = None,
                        accuracy_threshold: float = 0,
                        deployment_target: DeploymentTarget = None) -> Recommendation:
        """
        Classifies a task and lists suitable models grouped by tier.

        A given (category, subcategory) pair skips classification. Models and the
        `max_results` smallest of them that pass the filters are only attached
        when the task label is confident.

        Args:
            text: Free-text task description.
            category: Known task category.
            subcategory: Known task subcategory.
            accuracy_threshold: Minimum accuracy in percent; 0 disables the filter.
            deployment_target: Deployment target; None disables the filter.

        Raises:
            ValueError: If only one of category and subcategory is given, the
                label is unknown, or a filter argument is invalid.
        """
        if (category is None) != (subcategory is None):
            raise ValueError("category and subcategory must be given together")

        if category is not None:
            outcome = self.orchestrator.confirm(category, subcategory)
        else:
            outcome = await self.orchestrator.classify(text)

        if not outcome.is_confident:
            return Recommendation(outcome=outcome)

        label = outcome.result.label
        models = self.selector.grouped_by_tier(label.category,
                                               label.subcategory,
                                               accuracy_threshold=accuracy_threshold,
                                               deployment_target=deployment_target)
        logger.info(f"Recommending {models.total_shown} models for {label} "
                    f"({models.total_hidden} hidden by filters).")
        top_picks = self.selector.rank(models.shown_models())[:self.max_results]
        return Recommendation(outcome=outcome, models=models, top_picks=top_picks)

    def impact(self, model: Model) -> EnvironmentalImpact:
        return self.impact_calculator.calculate_impact(model)
