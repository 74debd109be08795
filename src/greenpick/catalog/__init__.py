"""
Static catalogs for the GreenPick model advisor.

Provides the typed task taxonomy and model catalog together with validated
loaders. The packaged JSON data lives in the `data` directory.

Classes:
    TaskTaxonomy: Categories, subcategories, keywords and example texts
    ModelCatalog: Tiered model records per task
"""

from .loader import (DEFAULT_MODELS_PATH, DEFAULT_TASKS_PATH, CatalogSegment,
                     ModelCatalog, TaskTaxonomy, load_model_catalog,
                     load_task_taxonomy, parse_model_catalog,
                     parse_task_taxonomy)
