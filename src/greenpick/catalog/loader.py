"""
Static catalog loading and validation.

GreenPick ships two read-only JSON catalogs: a task taxonomy (category ->
subcategory -> keywords + example texts) and a model catalog (category ->
subcategory -> tier -> model records). Both are parsed into typed records at
startup; anything malformed raises `CatalogValidationError` immediately so
that no request ever trips over a bad segment later.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError

from ..core.entities import Model, TaskExample, TaskLabel, Tier
from ..core.errors import CatalogValidationError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_TASKS_PATH = DATA_DIR / "tasks.json"
DEFAULT_MODELS_PATH = DATA_DIR / "models.json"

# Tier name -> ranked list of models
CatalogSegment = Dict[Tier, List[Model]]


class SubcategoryInfo(BaseModel):
    label: Optional[str] = None
    description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)


class CategoryInfo(BaseModel):
    label: Optional[str] = None
    description: Optional[str] = None
    subcategories: Dict[str, SubcategoryInfo] = Field(default_factory=dict)


class TaskTaxonomy(BaseModel):
    """
    The task taxonomy, in catalog order.

    Dict insertion order is preserved from the JSON file and is what
    "catalog order" means for tie-breaking and default priorities.
    """
    categories: Dict[str, CategoryInfo]

    def iter_subcategories(self) -> Iterator[Tuple[TaskLabel, SubcategoryInfo]]:
        for category, info in self.categories.items():
            for subcategory, sub_info in info.subcategories.items():
                yield TaskLabel(category=category, subcategory=subcategory), sub_info

    def labels(self) -> List[TaskLabel]:
        return [label for label, _ in self.iter_subcategories()]

    def has_label(self, category: str, subcategory: str) -> bool:
        info = self.categories.get(category)
        return info is not None and subcategory in info.subcategories

    def examples(self) -> List[TaskExample]:
        """All example texts as TaskExamples, in catalog order."""
        return [TaskExample(category=label.category, subcategory=label.subcategory, text=text)
                for label, info in self.iter_subcategories()
                for text in info.examples]

    def keywords(self) -> Dict[TaskLabel, List[str]]:
        return {label: list(info.keywords) for label, info in self.iter_subcategories()}


class ModelCatalog:
    """
    Read-only model catalog indexed by (category, subcategory) and tier.

    Args:
        segments: Mapping of category -> subcategory -> tier -> models.
    """
    def __init__(self, segments: Mapping[str, Mapping[str, CatalogSegment]]):
        self._segments = {category: {subcategory: {tier: list(models) for tier, models in tiers.items()}
                                     for subcategory, tiers in subcats.items()}
                          for category, subcats in segments.items()}

    def segment(self, category: str, subcategory: str) -> Optional[CatalogSegment]:
        """Returns the tier mapping of a task, or None when the task has no entry."""
        return self._segments.get(category, {}).get(subcategory)

    def categories(self) -> Dict[str, Dict[str, CatalogSegment]]:
        return self._segments

    def __len__(self) -> int:
        return sum(len(models)
                   for subcats in self._segments.values()
                   for tiers in subcats.values()
                   for models in tiers.values())


def _read_json(path: Union[str, Path]) -> Any:
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        logger.error(f"Catalog file not found: {path}")
        raise
    except json.JSONDecodeError as e:
        logger.error(f"Catalog file is not valid JSON: {path}", exc_info=True)
        raise CatalogValidationError(f"{path} is not valid JSON: {e}") from e


def parse_task_taxonomy(data: Any) -> TaskTaxonomy:
    """
    Validates raw taxonomy data.

    Raises:
        CatalogValidationError: If the structure is malformed or holds no examples.
    """
    try:
        taxonomy = TaskTaxonomy.model_validate(data)
    except ValidationError as e:
        raise CatalogValidationError(f"Invalid task taxonomy: {e}") from e

    if not taxonomy.examples():
        raise CatalogValidationError("Task taxonomy contains no example texts")
    return taxonomy


def parse_model_catalog(data: Any, taxonomy: Optional[TaskTaxonomy] = None) -> ModelCatalog:
    """
    Validates raw model catalog data.

    Args:
        data: Parsed JSON with a top-level "models" mapping.
        taxonomy: When given, every (category, subcategory) must exist in it.

    Raises:
        CatalogValidationError: On unknown tiers, tier/size disagreement,
            malformed records or tasks missing from the taxonomy.
    """
    if not isinstance(data, dict) or not isinstance(data.get("models"), dict):
        raise CatalogValidationError("Model catalog must contain a 'models' mapping")

    segments: Dict[str, Dict[str, CatalogSegment]] = {}
    for category, subcats in data["models"].items():
        if not isinstance(subcats, dict):
            raise CatalogValidationError(f"Category '{category}' must map subcategories to tiers")

        for subcategory, tiers in subcats.items():
            if taxonomy is not None and not taxonomy.has_label(category, subcategory):
                raise CatalogValidationError(f"Unknown task '{category}/{subcategory}' in model catalog")
            if not isinstance(tiers, dict):
                raise CatalogValidationError(f"Task '{category}/{subcategory}' must map tiers to model lists")

            segment: CatalogSegment = {}
            for tier_name, records in tiers.items():
                try:
                    tier = Tier(tier_name)
                except ValueError:
                    raise CatalogValidationError(
                        f"Unknown tier '{tier_name}' in '{category}/{subcategory}'") from None
                if not isinstance(records, list):
                    raise CatalogValidationError(
                        f"Tier '{tier_name}' of '{category}/{subcategory}' must be a list")

                segment[tier] = [_parse_model(record, tier, category, subcategory) for record in records]

            segments.setdefault(category, {})[subcategory] = segment

    catalog = ModelCatalog(segments)
    logger.info(f"Model catalog loaded with {len(catalog)} models.")
    return catalog


def _parse_model(record: Any, tier: Tier, category: str, subcategory: str) -> Model:
    if not isinstance(record, dict):
        raise CatalogValidationError(f"Model record in '{category}/{subcategory}' must be an object")
    try:
        return Model.model_validate({**record, "tier": tier, "category": category, "subcategory": subcategory})
    except ValidationError as e:
        model_id = record.get("id", "<missing id>")
        raise CatalogValidationError(
            f"Invalid model '{model_id}' in '{category}/{subcategory}/{tier.value}': {e}") from e


def load_task_taxonomy(path: Optional[Union[str, Path]] = None) -> TaskTaxonomy:
    """Loads the task taxonomy from `path`, or the packaged one."""
    path = path or DEFAULT_TASKS_PATH
    taxonomy = parse_task_taxonomy(_read_json(path))
    logger.info(f"Task taxonomy loaded from {path} with {len(taxonomy.labels())} tasks.")
    return taxonomy


def load_model_catalog(path: Optional[Union[str, Path]] = None,
                       taxonomy: Optional[TaskTaxonomy] = None) -> ModelCatalog:
    """Loads the model catalog from `path`, or the packaged one."""
    return parse_model_catalog(_read_json(path or DEFAULT_MODELS_PATH), taxonomy)
