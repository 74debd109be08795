"""
Model selection with "smaller is better" ranking.

Given a confirmed task, the selector filters the catalog's candidate models
by accuracy and deployment target and ranks them: lighter tiers first, then
smaller models within a tier. Missing catalog data never raises; it shows up
as empty lists and zero counts.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Sequence, Union

from ...catalog import ModelCatalog
from ...core.constants import DEFAULT_MAX_RESULTS, MAX_ACCURACY_THRESHOLD
from ...core.entities import (DeploymentOption, FilterResult, GroupedModels,
                              Model, Tier, TierGroup)

logger = logging.getLogger(__name__)

# A target accepts every model deployable to an environment it can host
DEPLOYMENT_TARGET_MATCHES: Dict[DeploymentOption, FrozenSet[DeploymentOption]] = {
    DeploymentOption.BROWSER: frozenset({DeploymentOption.BROWSER}),
    DeploymentOption.EDGE: frozenset({DeploymentOption.BROWSER, DeploymentOption.EDGE,
                                      DeploymentOption.MOBILE}),
    DeploymentOption.CLOUD: frozenset({DeploymentOption.BROWSER, DeploymentOption.EDGE,
                                       DeploymentOption.MOBILE, DeploymentOption.CLOUD,
                                       DeploymentOption.SERVER}),
}

DeploymentTarget = Optional[Union[DeploymentOption, str]]


def to_deployment_option(target: DeploymentTarget) -> Optional[DeploymentOption]:
    """
    Coerces a deployment target given as enum, string or None.

    Raises:
        ValueError: If a string does not name a deployment option.
    """
    if target is None or isinstance(target, DeploymentOption):
        return target
    value = target.strip().lower()
    if not value:
        return None
    try:
        return DeploymentOption(value)
    except ValueError:
        valid = ", ".join(option.value for option in DeploymentOption)
        raise ValueError(f"Unknown deployment target '{target}'. Supported: {valid}") from None


class ModelSelector:
    """
    Filters and ranks catalog models for a task.

    The selector keeps no state besides the catalog reference.

    Args:
        catalog: Validated model catalog.
    """
    def __init__(self, catalog: ModelCatalog):
        self.catalog = catalog

    def models_for(self, category: str, subcategory: str) -> List[Model]:
        """
        Returns all models of a task in tier order, or an empty list.
        """
        segment = self.catalog.segment(category, subcategory)
        if not segment:
            return []
        return [model for tier in Tier.ordered() for model in segment.get(tier, [])]

    def select_models(self, category: str, subcategory: str,
                      max_results: int = DEFAULT_MAX_RESULTS) -> List[Model]:
        """
        Returns the `max_results` most efficient models of a task.
        """
        return self.rank(self.models_for(category, subcategory))[:max_results]

    @staticmethod
    def rank(models: Sequence[Model]) -> List[Model]:
        """
        Ranks models by tier priority, then size ascending.

        The sort is stable, so models of equal tier and size keep their
        input order and ranking an already ranked list is a no-op.

        Args:
            models: Models to rank; not modified.

        Returns:
            A new ranked list.
        """
        return sorted(models, key=lambda model: (model.tier.priority, model.size_mb))

    @staticmethod
    def filter_by_accuracy(models: Sequence[Model], threshold: float = 0) -> FilterResult:
        """
        Keeps models whose accuracy meets a percentage threshold.

        A threshold of 0 disables filtering entirely, so models without an
        accuracy pass. Any other threshold treats missing accuracy as 0.

        Args:
            models: Candidate models.
            threshold: Minimum accuracy in percent (0-100).

        Returns:
            Kept models plus the number hidden.

        Raises:
            ValueError: If the threshold is outside 0-100.
        """
        if not 0 <= threshold <= MAX_ACCURACY_THRESHOLD:
            raise ValueError(f"Accuracy threshold must be between 0 and {MAX_ACCURACY_THRESHOLD}, got {threshold}")

        models = list(models)
        if threshold == 0:
            return FilterResult(filtered=models, total=len(models), hidden=0)

        threshold_decimal = threshold / 100
        filtered = [model for model in models if (model.accuracy or 0.0) >= threshold_decimal]
        return FilterResult(filtered=filtered, total=len(models), hidden=len(models) - len(filtered))

    @staticmethod
    def filter_by_deployment(models: Sequence[Model], target: DeploymentTarget = None) -> FilterResult:
        """
        Keeps models deployable to a target environment.

        `browser` accepts browser models, `edge` also accepts mobile and edge
        models, and `cloud` accepts everything. Other targets accept only
        themselves. None disables filtering.

        Targets must name a `DeploymentOption`; an unknown string raises
        instead of matching no model.

        Args:
            models: Candidate models.
            target: Deployment target, as enum or string.

        Returns:
            Kept models plus the number hidden.

        Raises:
            ValueError: If a string target does not name a deployment option.
        """
        models = list(models)
        option = to_deployment_option(target)
        if option is None:
            return FilterResult(filtered=models, total=len(models), hidden=0)

        allowed = DEPLOYMENT_TARGET_MATCHES.get(option, frozenset({option}))
        filtered = [model for model in models if allowed.intersection(model.deployment_options)]
        return FilterResult(filtered=filtered, total=len(models), hidden=len(models) - len(filtered))

    def grouped_by_tier(self,
                        category: str,
                        subcategory: str,
                        accuracy_threshold: float = 0,
                        deployment_target: DeploymentTarget = None) -> GroupedModels:
        """
        Filters and ranks a task's models separately for each tier.

        Args:
            category: Task category.
            subcategory: Task subcategory.
            accuracy_threshold: Minimum accuracy in percent; 0 disables the filter.
            deployment_target: Deployment target; None disables the filter.

        Returns:
            All four tiers with ranked models and hidden counts. A task absent
            from the catalog yields empty tiers and zero totals.

        Raises:
            ValueError: If the accuracy threshold or deployment target is invalid.
        """
        segment = self.catalog.segment(category, subcategory)
        if segment is None:
            logger.info(f"No catalog entries for {category}/{subcategory}.")
            return GroupedModels()

        groups: Dict[str, TierGroup] = {}
        total_hidden = total_shown = 0
        for tier in Tier.ordered():
            tier_models = segment.get(tier, [])

            accuracy_result = self.filter_by_accuracy(tier_models, accuracy_threshold)
            deploy_result = self.filter_by_deployment(accuracy_result.filtered, deployment_target)
            hidden = accuracy_result.hidden + deploy_result.hidden

            groups[tier.value] = TierGroup(models=self.rank(deploy_result.filtered), hidden=hidden)
            total_hidden += hidden
            total_shown += len(deploy_result.filtered)

        return GroupedModels(**groups, total_hidden=total_hidden, total_shown=total_shown)

    def available_categories(self) -> Dict[str, Dict[str, int]]:
        """
        Counts models per task, omitting tasks and categories without models.
        """
        result: Dict[str, Dict[str, int]] = {}
        for category, subcats in self.catalog.categories().items():
            counts = {subcategory: sum(len(models) for models in tiers.values())
                      for subcategory, tiers in subcats.items()}
            counts = {subcategory: count for subcategory, count in counts.items() if count > 0}
            if counts:
                result[category] = counts
        return result
