"""
Embedding-based task classifier.

Encodes a task description, compares it against the reference embeddings of
the taxonomy examples, and lets the K nearest examples vote on the label with
their similarity as weight. The encoder is injected, so tests can substitute
a deterministic fake for the sentence-transformers model.
"""

import asyncio
import logging
import math
from collections import defaultdict
from typing import Callable, Dict, Optional, Sequence

from ...core.constants import TOP_K
from ...core.entities import (ClassificationResult, ClassificationSource,
                              ClassificationVote, InitState, LabelScore,
                              TaskExample, TaskLabel)
from ...core.errors import (ClassificationFailed, ClassifierError,
                            ClassifierNotReady, DimensionMismatch,
                            EncoderUnavailable)
from ...shared.embedders import EncoderBase
from ...shared.similarity import as_vector
from .reference_store import ReferenceEmbeddingStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[InitState], None]


def aggregate_votes(votes: Sequence[ClassificationVote]) -> ClassificationResult:
    """
    Turns the top-K votes into a single weighted prediction.

    Each vote adds its similarity to its label's weight; negative similarities
    add nothing. The label with the largest weight wins, and on equal weight
    the label of the higher-ranked vote wins. Confidence is the winner's share
    of the total weight. It is exactly 1.0 when every vote picks the same
    label, whatever the similarities, and strictly below 1.0 otherwise, even
    when the other labels only carry zero weight.

    Args:
        votes: Votes sorted by similarity, highest first.

    Returns:
        The winning label with confidence and per-label breakdown.

    Raises:
        ValueError: If there are no votes.
    """
    if not votes:
        raise ValueError("Cannot aggregate an empty list of votes")

    # dicts keep first-seen order, i.e. the rank of each label's best vote
    weights: Dict[TaskLabel, float] = defaultdict(float)
    counts: Dict[TaskLabel, int] = defaultdict(int)
    for vote in votes:
        weights[vote.label] += max(vote.similarity, 0.0)
        counts[vote.label] += 1

    winner = max(weights, key=weights.get)
    total = sum(weights.values())
    if len(weights) == 1:
        confidence = 1.0
    elif total > 0:
        # A dissenting vote keeps the share below 1 even at zero weight
        confidence = min(weights[winner] / total, math.nextafter(1.0, 0.0))
    else:
        confidence = 0.0

    breakdown = sorted(
        (LabelScore(category=label.category, subcategory=label.subcategory,
                    weight=weight, votes=counts[label])
         for label, weight in weights.items()),
        key=lambda score: score.weight, reverse=True)

    return ClassificationResult(category=winner.category,
                                subcategory=winner.subcategory,
                                confidence=confidence,
                                vote_breakdown=breakdown,
                                votes=list(votes),
                                source=ClassificationSource.EMBEDDING,
                                candidates=[score.label for score in breakdown])


class EmbeddingClassifier:
    """
    Nearest-neighbour voting classifier over reference embeddings.

    Initialization downloads and loads the encoder and encodes every example;
    it may take seconds and reports its progress through `state` and the
    optional `on_progress` callback. Classification is refused until the
    state is `READY`.

    Args:
        encoder: Text encoder used for both references and queries.
        examples: Taxonomy examples to build the reference store from.
        top_k: Number of nearest references that vote.
        on_progress: Called with every new InitState.
    """
    def __init__(self,
                 encoder: EncoderBase,
                 examples: Sequence[TaskExample],
                 top_k: int = TOP_K,
                 on_progress: Optional[ProgressCallback] = None):
        if top_k <= 0:
            raise ValueError(f"top_k must be positive, got {top_k}")

        self.encoder = encoder
        self.examples = list(examples)
        self.top_k = top_k
        self.on_progress = on_progress

        self._state = InitState.IDLE
        self._store: Optional[ReferenceEmbeddingStore] = None
        self._init_error: Optional[EncoderUnavailable] = None
        self._settled = asyncio.Event()

    @property
    def state(self) -> InitState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == InitState.READY

    @property
    def store(self) -> Optional[ReferenceEmbeddingStore]:
        return self._store

    def _set_state(self, state: InitState):
        self._state = state
        logger.info(f"Embedding classifier state: {state.value}")
        if self.on_progress is not None:
            self.on_progress(state)

    async def initialize(self) -> None:
        """
        Prepares the encoder and builds a fresh reference store.

        Runs the blocking steps in worker threads and moves through
        DOWNLOADING -> LOADING -> COMPUTING -> READY.

        Raises:
            EncoderUnavailable: If any step fails. The state becomes ERROR.
        """
        self._store = None
        self._init_error = None
        self._settled.clear()

        try:
            self._set_state(InitState.DOWNLOADING)
            await asyncio.to_thread(self.encoder.download)

            self._set_state(InitState.LOADING)
            await asyncio.to_thread(self.encoder.load)

            self._set_state(InitState.COMPUTING)
            self._store = await asyncio.to_thread(ReferenceEmbeddingStore.build, self.examples, self.encoder)
        except asyncio.CancelledError:
            self._state = InitState.IDLE
            # Waiters wake on cancellation too
            self._settled.set()
            raise
        except Exception as e:
            logger.error("Embedding classifier initialization failed.", exc_info=True)
            error = e if isinstance(e, EncoderUnavailable) else EncoderUnavailable(str(e))
            self._init_error = error
            self._set_state(InitState.ERROR)
            self._settled.set()
            if error is e:
                raise
            raise error from e

        self._set_state(InitState.READY)
        self._settled.set()

    async def wait_until_ready(self, timeout: Optional[float] = None) -> None:
        """
        Waits for initialization to finish or be cancelled.

        Returns without error after a cancellation; callers check `is_ready`.

        Args:
            timeout: Maximum number of seconds to wait; None waits indefinitely.

        Raises:
            asyncio.TimeoutError: If initialization has not finished in time.
            EncoderUnavailable: If initialization failed.
        """
        if not self._settled.is_set():
            await asyncio.wait_for(self._settled.wait(), timeout)
        if self._init_error is not None:
            raise self._init_error

    def classify(self, text: str) -> ClassificationResult:
        """
        Classifies a task description.

        Args:
            text: Free-text task description.

        Returns:
            Winning label, confidence and vote breakdown.

        Raises:
            ClassifierNotReady: If called before initialization completed.
            ClassificationFailed: If the encoder fails on the query.
            DimensionMismatch: If the query embedding has the wrong size.
        """
        if not self.is_ready or self._store is None:
            raise ClassifierNotReady(f"Embedding classifier is {self._state.value}, not ready")

        try:
            embeddings = self.encoder.extract_embeddings([text])
        except ClassifierError:
            raise
        except Exception as e:
            logger.error("Failed to encode query.", exc_info=True)
            raise ClassificationFailed(f"Encoder failed on query: {e}") from e

        query = as_vector(embeddings[0])
        if query.shape[0] != self._store.dimension:
            raise DimensionMismatch(self._store.dimension, query.shape[0])

        votes = self._store.search(query, self.top_k)
        result = aggregate_votes(votes)
        logger.debug(f"Classified as {result.label} with confidence {result.confidence:.3f}")
        return result

