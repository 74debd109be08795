import yaml
from pathlib import Path
from typing import Dict, Any
import logging

from ..common.utils import require_env_var
from ..core import constants

logger = logging.getLogger(__name__)


class Config:
    """
    Singleton configuration class that loads and manages application settings from a YAML file.

    This class ensures a single configuration instance is used across the application.
    It loads from a YAML file specified by the CONFIG_PATH environment variable and provides
    methods to access, modify, validate, and persist configuration data. Classification
    thresholds default to the values in `core.constants`.
    """
    _instance = None
    _config_data: Dict[str, Any] = None
    _path: Path = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._path = cls._get_config_path()
            cls._load_config()
        return cls._instance

    @staticmethod
    def _get_config_path() -> Path:
        return Path(require_env_var("CONFIG_PATH"))

    @classmethod
    def _load_config(cls):
        if not cls._path.exists():
            logger.warning("The config.yaml not found.")
            cls._initialize_default_config()
        else:
            with open(cls._path, 'r', encoding='utf-8') as f:
                cls._config_data = yaml.safe_load(f) or {}
        cls._validate_config()

    @classmethod
    def _initialize_default_config(cls):
        cls._config_data = {
            "logging_dir": "logs",
            "catalog": {
                "tasks_path": None,
                "models_path": None
            },
            "embedder": {
                "enabled": True,
                "model_name": constants.DEFAULT_EMBED_MODEL,
                "device_name": "cpu",
                "dimension": constants.EMBEDDING_DIM,
                "batch_size": constants.EMBED_BATCH_SIZE,
                "cache_dir": None
            },
            "classification": {
                "top_k": constants.TOP_K,
                "confidence_threshold": constants.CONFIDENCE_THRESHOLD,
                "min_agreeing_votes": constants.MIN_AGREEING_VOTES,
                "ready_timeout_seconds": constants.READY_TIMEOUT_SECONDS,
                "max_query_length": constants.MAX_QUERY_LENGTH,
                "max_clarification_candidates": constants.MAX_CLARIFICATION_CANDIDATES
            },
            "fallback": {
                "jaccard_threshold": constants.JACCARD_THRESHOLD,
                "containment_boost": constants.CONTAINMENT_BOOST,
                "exact_match_multiplier": constants.EXACT_MATCH_MULTIPLIER,
                "min_ngram_score": constants.MIN_NGRAM_SCORE,
                "category_priority": []
            },
            "selection": {
                "max_results": constants.DEFAULT_MAX_RESULTS
            }
        }

        cls.save()

    @classmethod
    def _validate_config(cls):
        required_keys = [
            "logging_dir", "catalog", "embedder", "classification",
            "fallback", "selection"
        ]
        for key in required_keys:
            if key not in cls._config_data:
                raise ValueError(f"Missing required config key: {key}")

    @classmethod
    def get(cls, key: str, default = None) -> Any:
        keys  = key.split('.')
        cfg = cls._config_data
        for key in keys:
            if isinstance(cfg, dict) and key in cfg:
                cfg = cfg[key]
            else:
                return default
        return cfg

    @classmethod
    def set(cls, key: str, value: Any):
        keys = key.split('.')
        cfg = cls._config_data
        for key in keys[:-1]:
            if key not in cfg or not isinstance(cfg[key], dict):
                cfg[key] = {}
            cfg = cfg[key]
        cfg[keys[-1]] = value
        logger.info(f"Value for {key} was set")

    @classmethod
    def update(cls, obj: Dict[str, Any]):
        cls._config_data.update(obj)
        logger.info("Configuration successfully updated with new values.")

    @classmethod
    def reload(cls):
        cls._load_config()
        logger.info("Configuration reloaded from file.")

    @classmethod
    def save(cls):
        cls._path.parent.mkdir(parents=True, exist_ok=True)
        with open(cls._path, "w", encoding="utf-8") as f:
            yaml.safe_dump(cls._config_data, f)
        logger.info(f"Configuration saved to: {cls._path}")

    @classmethod
    def as_dict(cls):
        return cls._config_data.copy()
