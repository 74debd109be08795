import pytest

from greenpick.core.entities import Model, Tier
from greenpick.modules.selection import EnvironmentalImpactCalculator


def make_model(model_id, size_mb):
    return Model(id=model_id, size_mb=size_mb, tier=Tier.from_size(size_mb),
                 category="cv", subcategory="image_classification")


@pytest.fixture
def calculator():
    return EnvironmentalImpactCalculator()


@pytest.mark.parametrize("size_mb, score, label, tier", [
    (10, 1, "Low Impact", "lightweight"),
    (500, 1, "Low Impact", "lightweight"),
    (501, 2, "Medium Impact", "standard"),
    (4000, 2, "Medium Impact", "standard"),
    (4001, 3, "High Impact", "advanced"),
    (141000, 3, "High Impact", "advanced"),
])
def test_calculate_impact_thresholds(calculator, size_mb, score, label, tier):
    impact = calculator.calculate_impact(make_model("m", size_mb))

    assert impact.environmental_score == score
    assert impact.score_label == label
    assert impact.tier == tier
    assert impact.size_mb == size_mb


def test_compare_models_orders_by_score_then_size(calculator):
    models = [make_model("huge", 9000), make_model("mid", 1200), make_model("small-b", 300),
              make_model("small-a", 40)]

    ranked = calculator.compare_models(models)

    assert [model.id for model, _ in ranked] == ["small-a", "small-b", "mid", "huge"]
    assert [impact.environmental_score for _, impact in ranked] == [1, 1, 2, 3]


def test_compare_models_empty(calculator):
    assert calculator.compare_models([]) == []
