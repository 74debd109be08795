"""
Advisor factory module for creating configured Advisor instances.

Reads the application configuration, loads and validates the static
catalogs, and wires the embedder, both classifiers, the orchestrator and the
model selector together.
"""

import logging
from typing import Any, Dict, List, Optional

from ..catalog import TaskTaxonomy, load_model_catalog, load_task_taxonomy
from ..core.entities import TaskLabel
from ..modules.classification import EmbeddingClassifier, FallbackClassifier
from ..modules.selection import EnvironmentalImpactCalculator, ModelSelector
from ..shared.config import Config
from ..shared.embedders import Embedder
from ..shared.utils import convert_numeric_strings, optional_path
from .advisor import Advisor
from .classification import ClassificationOrchestrator

logger = logging.getLogger(__name__)


class AdvisorFactory:
    """
    Factory class for building a configured instance of the `Advisor` class.

    Each `_load_*_args` step reads one configuration section and adds the
    component it describes to the shared argument dict.
    """

    @classmethod
    def build(cls, cfg: Optional[Config] = None, use_embedder: Optional[bool] = None) -> Advisor:
        """
        Constructs an Advisor using configuration values.

        Args:
            cfg: Configuration to read; defaults to the `Config` singleton.
            use_embedder: Overrides `embedder.enabled` when given.

        Returns:
            An advisor whose embedding classifier still has to be started.
        """
        cfg = cfg or Config()
        args: Dict[str, Any] = {}

        cls._load_catalog_args(cfg, args)
        cls._load_fallback_args(cfg, args)
        cls._load_embedding_args(cfg, args, use_embedder)
        cls._load_orchestrator_args(cfg, args)
        cls._load_selection_args(cfg, args)

        return Advisor(orchestrator=args['orchestrator'],
                       selector=args['selector'],
                       impact_calculator=EnvironmentalImpactCalculator(),
                       **cls._drop_unset(max_results=args['max_results']))

    @classmethod
    def _load_catalog_args(cls, cfg: Config, args: Dict[str, Any]):
        """
        Load and validate the task taxonomy and model catalog.
        """
        cfg_catalog = cfg.get('catalog') or {}
        taxonomy = load_task_taxonomy(optional_path(cfg_catalog.get('tasks_path')))
        catalog = load_model_catalog(optional_path(cfg_catalog.get('models_path')), taxonomy)
        args.update({
            'taxonomy': taxonomy,
            'model_catalog': catalog,
        })

    @classmethod
    def _load_fallback_args(cls, cfg: Config, args: Dict[str, Any]):
        """
        Load fallback thresholds and build the keyword classifier.
        """
        cfg_fallback = cfg.get('fallback') or {}
        settings = {key: convert_numeric_strings(cfg_fallback[key])
                    for key in ('jaccard_threshold', 'containment_boost',
                                'exact_match_multiplier', 'min_ngram_score')
                    if cfg_fallback.get(key) is not None}

        priority = cls._parse_priority(cfg_fallback.get('category_priority') or [])
        args.update({
            'fallback': FallbackClassifier.from_taxonomy(args['taxonomy'], priority, **settings)
        })

    @classmethod
    def _load_embedding_args(cls, cfg: Config, args: Dict[str, Any], use_embedder: Optional[bool] = None):
        """
        Load embedder configuration and build the embedding classifier.
        """
        cfg_embed = cfg.get('embedder') or {}
        enabled = convert_numeric_strings(cfg_embed.get('enabled', True))
        if use_embedder is not None:
            enabled = use_embedder

        if not enabled:
            logger.info("Embedder disabled; using the fallback classifier only.")
            args.update({'embedding': None})
            return

        embedder = Embedder(**cls._drop_unset(
            model_name=convert_numeric_strings(cfg_embed.get('model_name')),
            device_name=convert_numeric_strings(cfg_embed.get('device_name')),
            dimension=convert_numeric_strings(cfg_embed.get('dimension')),
            batch_size=convert_numeric_strings(cfg_embed.get('batch_size')),
            cache_dir=optional_path(cfg_embed.get('cache_dir'))))

        taxonomy: TaskTaxonomy = args['taxonomy']
        args.update({
            'embedding': EmbeddingClassifier(encoder=embedder,
                                             examples=taxonomy.examples(),
                                             **cls._drop_unset(
                                                 top_k=convert_numeric_strings(cfg.get('classification.top_k'))))
        })

    @classmethod
    def _load_orchestrator_args(cls, cfg: Config, args: Dict[str, Any]):
        """
        Load the confidence policy and build the orchestrator.
        """
        cfg_cls = cfg.get('classification') or {}
        args.update({
            'orchestrator': ClassificationOrchestrator(
                fallback=args['fallback'],
                embedding=args['embedding'],
                taxonomy=args['taxonomy'],
                **cls._drop_unset(
                    confidence_threshold=convert_numeric_strings(cfg_cls.get('confidence_threshold')),
                    min_agreeing_votes=convert_numeric_strings(cfg_cls.get('min_agreeing_votes')),
                    ready_timeout=convert_numeric_strings(cfg_cls.get('ready_timeout_seconds')),
                    max_candidates=convert_numeric_strings(cfg_cls.get('max_clarification_candidates')),
                    max_query_length=convert_numeric_strings(cfg_cls.get('max_query_length'))))
        })

    @classmethod
    def _load_selection_args(cls, cfg: Config, args: Dict[str, Any]):
        """
        Build the model selector and read how many top picks to list.
        """
        args.update({
            'selector': ModelSelector(args['model_catalog']),
            'max_results': convert_numeric_strings(cfg.get('selection.max_results')),
        })

    @staticmethod
    def _drop_unset(**values: Any) -> Dict[str, Any]:
        """Keeps only configured values so constructor defaults apply to the rest."""
        return {key: value for key, value in values.items() if value is not None}

    @staticmethod
    def _parse_priority(values: List[str]) -> List[TaskLabel]:
        """
        Parses 'category/subcategory' strings.

        Raises:
            ValueError: If an entry is not of the form 'category/subcategory'.
        """
        labels = []
        for value in values:
            category, sep, subcategory = str(value).partition('/')
            if not sep or not category or not subcategory:
                error_msg = f"Category priority entries must look like 'category/subcategory', got '{value}'"
                logger.error(error_msg)
                raise ValueError(error_msg)
            labels.append(TaskLabel(category=category.strip(), subcategory=subcategory.strip()))
        return labels
