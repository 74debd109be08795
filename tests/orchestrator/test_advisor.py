import pytest

from greenpick.core.entities import OutcomeStatus, Tier
from greenpick.modules.selection import ModelSelector
from greenpick.orchestrator import Advisor, ClassificationOrchestrator


@pytest.fixture
def advisor(taxonomy, fallback, model_catalog):
    orchestrator = ClassificationOrchestrator(fallback=fallback, taxonomy=taxonomy)
    return Advisor(orchestrator=orchestrator, selector=ModelSelector(model_catalog))


@pytest.mark.asyncio
async def test_recommend_from_description(advisor):
    await advisor.start()

    recommendation = await advisor.recommend("classify product images")

    assert recommendation.outcome.status == OutcomeStatus.CONFIDENT
    assert recommendation.models.total_shown == 6
    assert [m.id for m in recommendation.models.lightweight.models] == ["browser-model", "edge-model", "cloud-only"]


@pytest.mark.asyncio
async def test_recommend_with_filters(advisor):
    recommendation = await advisor.recommend("classify product images",
                                             accuracy_threshold=85,
                                             deployment_target="browser")

    models = recommendation.models
    assert models.lightweight.models == []
    assert [m.id for m in models.standard.models] == ["standard-browser"]
    assert models.total_shown == 1


@pytest.mark.asyncio
async def test_recommend_with_known_label_skips_classification(advisor):
    recommendation = await advisor.recommend(category="natural_language_processing",
                                             subcategory="sentiment_analysis")

    assert recommendation.outcome.result.confidence == 1.0
    assert [m.id for m in recommendation.models.tier(Tier.LIGHTWEIGHT).models] == ["tiny-sentiment"]


@pytest.mark.asyncio
async def test_recommend_label_without_models_is_empty(advisor):
    recommendation = await advisor.recommend(category="speech_processing", subcategory="speech_recognition")

    assert recommendation.outcome.is_confident
    assert recommendation.models.total_shown == 0


@pytest.mark.asyncio
async def test_recommend_needs_clarification_has_no_models(advisor):
    recommendation = await advisor.recommend("hello there")

    assert recommendation.outcome.status == OutcomeStatus.NEEDS_CLARIFICATION
    assert recommendation.models is None
    assert len(recommendation.outcome.candidates) == 3


@pytest.mark.asyncio
async def test_recommend_invalid_arguments(advisor):
    with pytest.raises(ValueError, match="together"):
        await advisor.recommend(category="computer_vision")

    with pytest.raises(ValueError, match="Unknown task label"):
        await advisor.recommend(category="computer_vision", subcategory="depth_estimation")

    with pytest.raises(ValueError, match="Unknown deployment target"):
        await advisor.recommend("classify product images", deployment_target="toaster")


def test_impact_delegates_to_calculator(advisor, model_catalog):
    model = model_catalog.segment("computer_vision", "image_classification")[Tier.STANDARD][0]

    impact = advisor.impact(model)

    assert impact.environmental_score == 2
    assert impact.score_label == "Medium Impact"


@pytest.mark.asyncio
async def test_top_picks_are_the_smallest_models(advisor):
    recommendation = await advisor.recommend("classify product images")

    assert [m.id for m in recommendation.top_picks] == ["browser-model", "edge-model", "cloud-only"]


@pytest.mark.asyncio
async def test_top_picks_respect_filters_and_limit(taxonomy, fallback, model_catalog):
    orchestrator = ClassificationOrchestrator(fallback=fallback, taxonomy=taxonomy)
    advisor = Advisor(orchestrator=orchestrator, selector=ModelSelector(model_catalog), max_results=2)

    recommendation = await advisor.recommend(category="computer_vision",
                                             subcategory="image_classification",
                                             deployment_target="cloud")

    assert [m.id for m in recommendation.top_picks] == ["browser-model", "edge-model"]

    recommendation = await advisor.recommend("hello there")
    assert recommendation.top_picks == []


def test_invalid_max_results(taxonomy, fallback, model_catalog):
    orchestrator = ClassificationOrchestrator(fallback=fallback, taxonomy=taxonomy)

    with pytest.raises(ValueError, match="max_results"):
        Advisor(orchestrator=orchestrator, selector=ModelSelector(model_catalog), max_results=0)
