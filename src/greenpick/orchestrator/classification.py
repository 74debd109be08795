"""
Classification orchestrator.

Decides which classifier answers a request and whether its answer is good
enough to act on. The embedding classifier is preferred; the fallback
classifier takes over while the embedding backend is unavailable, either for
a single request (readiness timeout) or for the rest of the session
(initialization failure).
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from ..core import constants
from ..core.entities import (ClassificationOutcome, ClassificationResult,
                             ClassificationSource, InitState,
                             OrchestratorState, OutcomeStatus, TaskLabel)
from ..core.errors import ClassifierError, EncoderUnavailable
from ..modules.classification import EmbeddingClassifier, FallbackClassifier

logger = logging.getLogger(__name__)

_INITIALIZING_STATES = (InitState.DOWNLOADING, InitState.LOADING, InitState.COMPUTING)


class ClassificationOrchestrator:
    """
    Routes classification requests and applies the confidence policy.

    Requests are serialized: a second concurrent `classify` waits for the
    first one to finish.

    Args:
        fallback: Keyword classifier, always available.
        embedding: Embedding classifier; None means fallback-only operation.
        taxonomy: Task taxonomy used to validate user-confirmed labels.
        confidence_threshold: Minimum embedding confidence for a confident outcome.
        min_agreeing_votes: Minimum number of top-K votes for the winning label.
        ready_timeout: Seconds to wait for an initializing embedding classifier.
        max_candidates: Number of labels offered when clarification is needed.
        max_query_length: Longest accepted task description, in characters.
    """
    def __init__(self,
                 fallback: FallbackClassifier,
                 embedding: Optional[EmbeddingClassifier] = None,
                 taxonomy=None,
                 confidence_threshold: float = constants.CONFIDENCE_THRESHOLD,
                 min_agreeing_votes: int = constants.MIN_AGREEING_VOTES,
                 ready_timeout: float = constants.READY_TIMEOUT_SECONDS,
                 max_candidates: int = constants.MAX_CLARIFICATION_CANDIDATES,
                 max_query_length: int = constants.MAX_QUERY_LENGTH):
        self.fallback = fallback
        self.embedding = embedding
        self.taxonomy = taxonomy
        self.confidence_threshold = confidence_threshold
        self.min_agreeing_votes = min_agreeing_votes
        self.ready_timeout = ready_timeout
        self.max_candidates = max_candidates
        self.max_query_length = max_query_length

        self._state = OrchestratorState.UNINITIALIZED
        self._fallback_only = False
        self._lock = asyncio.Lock()
        self._init_task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def fallback_only(self) -> bool:
        """True once the embedding route has been abandoned for the session."""
        return self._fallback_only or self.embedding is None

    async def start(self, embedding: Optional[EmbeddingClassifier] = None) -> None:
        """
        Initializes the embedding classifier, or a replacement for it.

        Starting again supersedes an initialization still in flight: the
        older task is cancelled and its outcome ignored. A failed
        initialization switches the session to the fallback route.

        Args:
            embedding: Replacement embedding classifier to attach first.
        """
        await self._await_initialization(*self._begin_initialization(embedding))

    def launch(self, embedding: Optional[EmbeddingClassifier] = None) -> asyncio.Task:
        """
        Same as `start`, but returns at once with the running task.

        Requests classified after this call wait for the initialization up to
        `ready_timeout`. Must be called with a running event loop.
        """
        return asyncio.create_task(self._await_initialization(*self._begin_initialization(embedding)))

    def _begin_initialization(self, embedding: Optional[EmbeddingClassifier]):
        if embedding is not None:
            self.embedding = embedding

        self._generation += 1
        if self._init_task is not None and not self._init_task.done():
            logger.info("Cancelling superseded embedding initialization.")
            self._init_task.cancel()
        self._init_task = None

        if self.embedding is None:
            self._switch_to_fallback("no embedding classifier attached")
            return None, self._generation

        self._fallback_only = False
        self._init_task = asyncio.create_task(self.embedding.initialize())
        return self._init_task, self._generation

    async def _await_initialization(self, task: Optional[asyncio.Task], generation: int) -> None:
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info("Superseded embedding initialization stopped.")
                return
            raise
        except EncoderUnavailable:
            if generation == self._generation:
                self._switch_to_fallback("embedding initialization failed")
            return

        if generation == self._generation:
            self._state = OrchestratorState.READY_EMBEDDING
            logger.info("Embedding classifier ready.")

    async def classify(self, text: str) -> ClassificationOutcome:
        """
        Classifies a task description.

        Never raises for classifier failures; they become degraded outcomes.

        Args:
            text: Free-text task description.

        Returns:
            A confident outcome, a clarification request with candidate
            labels, or an error outcome for invalid input.
        """
        async with self._lock:
            previous = self._state
            self._state = OrchestratorState.CLASSIFYING
            try:
                outcome = await self._classify(text)
            except Exception:
                self._state = previous
                raise
            self._state = OrchestratorState(outcome.status.value)
            return outcome

    def confirm(self, category: str, subcategory: str) -> ClassificationOutcome:
        """
        Accepts a label chosen by the user, bypassing scoring.

        Raises:
            ValueError: If the label is not part of the attached taxonomy.
        """
        if self.taxonomy is not None and not self.taxonomy.has_label(category, subcategory):
            raise ValueError(f"Unknown task label: {category}/{subcategory}")

        result = ClassificationResult(category=category,
                                      subcategory=subcategory,
                                      confidence=1.0,
                                      source=ClassificationSource.USER)
        self._state = OrchestratorState.CONFIDENT
        return ClassificationOutcome(status=OutcomeStatus.CONFIDENT, result=result)

    async def _classify(self, text: str) -> ClassificationOutcome:
        if text is None or not text.strip():
            return self._error("Task description is empty.")
        if len(text) > self.max_query_length:
            return self._error(f"Task description exceeds {self.max_query_length} characters.")

        embedding = await self._ready_embedding()
        if embedding is None:
            return self._from_fallback(text)

        try:
            result = embedding.classify(text)
        except ClassifierError as e:
            logger.error("Embedding classification failed.", exc_info=True)
            return self._clarify(None, text, reason=str(e))

        if result.confidence < self.confidence_threshold:
            return self._clarify(result, text, reason=f"Low confidence ({result.confidence:.2f}).")
        if result.agreeing_votes < self.min_agreeing_votes:
            return self._clarify(result, text,
                                 reason=f"Only {result.agreeing_votes} of {len(result.votes)} votes agree.")

        logger.info(f"Classified as {result.label} ({result.confidence:.2f}) by embedding.")
        return ClassificationOutcome(status=OutcomeStatus.CONFIDENT, result=result)

    async def _ready_embedding(self) -> Optional[EmbeddingClassifier]:
        """
        Returns the latest attached embedding classifier once it is ready.

        Waits at most `ready_timeout` in total, following restarts that attach
        or re-initialize a classifier while waiting. Returns None when the
        request should be answered by the fallback.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.ready_timeout

        while True:
            embedding = self.embedding
            if self.fallback_only:
                return None
            if embedding.is_ready:
                return embedding

            initializing = (embedding.state in _INITIALIZING_STATES
                            or (self._init_task is not None and not self._init_task.done()))
            if not initializing:
                if embedding.state == InitState.ERROR:
                    self._switch_to_fallback("embedding classifier is in error state")
                return None

            try:
                await embedding.wait_until_ready(max(deadline - loop.time(), 0))
            except asyncio.TimeoutError:
                logger.warning(f"Embedding classifier not ready after {self.ready_timeout}s; "
                               "using fallback for this request.")
                return None
            except EncoderUnavailable:
                if embedding is self.embedding:
                    self._switch_to_fallback("embedding initialization failed")
                    return None

            if embedding is self.embedding and embedding.is_ready:
                return embedding

            # Superseded while waiting; let the replacement initialization start
            await asyncio.sleep(0)

    def _from_fallback(self, text: str) -> ClassificationOutcome:
        result = self.fallback.classify(text)
        if result.source == ClassificationSource.PRIORITY:
            return ClassificationOutcome(status=OutcomeStatus.NEEDS_CLARIFICATION,
                                         result=result,
                                         candidates=self._limit(result.candidates),
                                         reason="No keyword match.")
        logger.info(f"Classified as {result.label} by fallback ({result.source.value}).")
        return ClassificationOutcome(status=OutcomeStatus.CONFIDENT, result=result)

    def _clarify(self, result: Optional[ClassificationResult], text: str,
                 reason: str) -> ClassificationOutcome:
        labels: List[TaskLabel] = list(result.candidates) if result is not None else []
        fallback_result = self.fallback.classify(text)
        labels += [fallback_result.label, *fallback_result.candidates]
        logger.info(f"Asking for clarification: {reason}")
        return ClassificationOutcome(status=OutcomeStatus.NEEDS_CLARIFICATION,
                                     result=result,
                                     candidates=self._limit(labels),
                                     reason=reason)

    def _limit(self, labels: Iterable[TaskLabel]) -> List[TaskLabel]:
        return list(dict.fromkeys(labels))[:self.max_candidates]

    def _error(self, reason: str) -> ClassificationOutcome:
        logger.warning(reason)
        return ClassificationOutcome(status=OutcomeStatus.ERROR, reason=reason)

    def _switch_to_fallback(self, reason: str):
        if not self._fallback_only:
            logger.warning(f"Routing to fallback classifier for this session: {reason}.")
        self._fallback_only = True
        self._state = OrchestratorState.READY_FALLBACK
