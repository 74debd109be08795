import os
import yaml
import pytest
from greenpick.shared.config import Config

@pytest.fixture(scope="function", autouse=True)
def isolated_config(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    monkeypatch.setenv("CONFIG_PATH", str(config_path))
    Config._instance = None
    yield str(config_path)
    Config._instance = None

def test_default_config_creation(isolated_config):
    config = Config()
    assert os.path.exists(isolated_config), "config.yaml should be created"
    assert config.get("logging_dir") == "logs"
    assert config.get("embedder.model_name") == "sentence-transformers/all-MiniLM-L6-v2"
    assert config.get("classification.top_k") == 5
    assert config.get("classification.confidence_threshold") == 0.70
    assert config.get("fallback.category_priority") == []
    assert config.get("selection.max_results") == 3

def test_config_is_singleton(isolated_config):
    assert Config() is Config()

def test_config_get_set_update(isolated_config):
    config = Config()

    # Test set
    config.set("classification.confidence_threshold", 0.9)
    assert config.get("classification.confidence_threshold") == 0.9

    # Test get fallback
    assert config.get("non.existent.key", default="fallback") == "fallback"

    # Test update
    config.update({"custom_key": "value"})
    assert config.get("custom_key") == "value"

def test_config_reload_and_save(isolated_config):
    config = Config()
    config.set("embedder.model_name", "new-model")
    config.save()

    # Read directly from file to ensure it was saved
    with open(isolated_config, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
        assert raw["embedder"]["model_name"] == "new-model"

    # Modify file and reload
    raw["embedder"]["model_name"] = "reloaded-model"
    with open(isolated_config, "w", encoding="utf-8") as f:
        yaml.safe_dump(raw, f)

    config.reload()
    assert config.get("embedder.model_name") == "reloaded-model"

def test_config_validation_failure(isolated_config):
    Config()

    with open(isolated_config, "w", encoding="utf-8") as f:
        yaml.safe_dump({"embedder": {}}, f)  # Incomplete config

    with pytest.raises(ValueError, match="Missing required config key"):
        Config.reload()

def test_missing_config_path_env(monkeypatch):
    monkeypatch.delenv("CONFIG_PATH", raising=False)

    with pytest.raises(EnvironmentError, match="CONFIG_PATH"):
        Config()
