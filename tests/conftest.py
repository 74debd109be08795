import threading
from typing import Dict, List, Optional, Union

import numpy as np
import pytest

from greenpick.catalog import parse_model_catalog, parse_task_taxonomy
from greenpick.modules.classification import EmbeddingClassifier, FallbackClassifier
from greenpick.shared.embedders import EncoderBase
from greenpick.shared.text_processing import tokenize

TEST_DIM = 384

TAXONOMY_DATA = {
    "categories": {
        "computer_vision": {
            "label": "Computer Vision",
            "subcategories": {
                "image_classification": {
                    "keywords": ["classify images", "image classification", "photo"],
                    "examples": [
                        "classify images",
                        "classify product images by type",
                        "sort images into categories",
                        "label photos and images",
                        "recognize objects in images and classify them",
                    ],
                },
                "object_detection": {
                    "keywords": ["object detection", "bounding box", "detect objects"],
                    "examples": [
                        "draw bounding boxes around cars",
                        "detect pedestrians in street video",
                        "locate defects on circuit boards",
                    ],
                },
            },
        },
        "natural_language_processing": {
            "label": "Natural Language Processing",
            "subcategories": {
                "sentiment_analysis": {
                    "keywords": ["sentiment", "positive or negative", "customer reviews"],
                    "examples": [
                        "analyze the sentiment of customer reviews",
                        "decide if tweets are positive or negative",
                        "score the mood of support tickets",
                    ],
                },
                "text_generation": {
                    "keywords": ["generate text", "chatbot", "write"],
                    "examples": [
                        "generate marketing descriptions",
                        "write blog posts automatically",
                        "build a chatbot that answers questions",
                    ],
                },
            },
        },
        "speech_processing": {
            "label": "Speech Processing",
            "subcategories": {
                "speech_recognition": {
                    "keywords": ["transcribe", "speech to text", "speech recognition"],
                    "examples": [
                        "turn podcast episodes into transcripts",
                        "convert voice memos to text",
                        "transcribe meeting recordings",
                    ],
                },
            },
        },
    }
}

MODELS_DATA = {
    "models": {
        "computer_vision": {
            "image_classification": {
                "lightweight": [
                    {"id": "browser-model", "sizeMB": 20, "accuracy": 0.77, "deploymentOptions": ["browser", "mobile"]},
                    {"id": "edge-model", "sizeMB": 50, "accuracy": 0.85, "deploymentOptions": ["edge", "cloud"]},
                    {"id": "cloud-only", "sizeMB": 100, "accuracy": 0.90, "deploymentOptions": ["cloud", "server"]},
                ],
                "standard": [
                    {"id": "standard-browser", "sizeMB": 800, "accuracy": 0.88, "deploymentOptions": ["browser"]},
                    {"id": "standard-cloud", "sizeMB": 1500, "accuracy": 0.92, "deploymentOptions": ["cloud"]},
                ],
                "advanced": [
                    {"id": "advanced-server", "sizeMB": 6000, "accuracy": 0.95, "deploymentOptions": ["server"]},
                ],
            }
        },
        "natural_language_processing": {
            "sentiment_analysis": {
                "lightweight": [
                    {"id": "tiny-sentiment", "sizeMB": 67, "accuracy": 0.91, "deploymentOptions": ["browser"]},
                ],
            },
            "text_generation": {
                "lightweight": [],
            },
        },
    }
}


class FakeEncoder(EncoderBase):
    """
    Deterministic bag-of-words encoder.

    Each distinct non-stopword gets its own axis, so cosine similarity is the
    normalized word overlap of two texts.

    Args:
        dimension: Output size.
        fail_on: Step that raises: 'download', 'load' or 'encode'.
        release: When given, `download` blocks until the event is set.
    """
    def __init__(self, dimension: int = TEST_DIM, fail_on: Optional[str] = None,
                 release: Optional[threading.Event] = None):
        self._dimension = dimension
        self.fail_on = fail_on
        self.release = release
        self.vocabulary: Dict[str, int] = {}
        self.encoded: List[str] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def download(self) -> None:
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.fail_on == "download":
            raise RuntimeError("network unreachable")

    def load(self) -> None:
        if self.fail_on == "load":
            raise RuntimeError("corrupt weights")

    def extract_embeddings(self, prompt: Union[str, List[str]]) -> np.ndarray:
        if self.fail_on == "encode":
            raise RuntimeError("encoder crashed")

        texts = [prompt] if isinstance(prompt, str) else list(prompt)
        self.encoded.extend(texts)
        out = np.zeros((len(texts), self._dimension), dtype=np.float32)
        for row, text in enumerate(texts):
            for word in tokenize(text):
                index = self.vocabulary.setdefault(word, len(self.vocabulary) % self._dimension)
                out[row, index] += 1.0
            norm = np.linalg.norm(out[row])
            if norm > 0:
                out[row] /= norm
        return out


@pytest.fixture
def taxonomy():
    return parse_task_taxonomy(TAXONOMY_DATA)


@pytest.fixture
def model_catalog():
    return parse_model_catalog(MODELS_DATA)


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def fallback(taxonomy):
    return FallbackClassifier.from_taxonomy(taxonomy)


@pytest.fixture
def embedding_classifier(taxonomy, fake_encoder):
    return EmbeddingClassifier(encoder=fake_encoder, examples=taxonomy.examples())
