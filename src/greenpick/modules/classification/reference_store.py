"""
Reference embedding store.

Holds one normalized embedding per taxonomy example and answers top-K
similarity queries by exhaustive comparison. With tens of entries a flat
matrix product is faster than any index structure.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from ...core.entities import ClassificationVote, ReferenceEntry, TaskExample
from ...core.errors import DimensionMismatch
from ...shared.embedders import EncoderBase
from ...shared.similarity import as_vector, similarity_scores

logger = logging.getLogger(__name__)


class ReferenceEmbeddingStore:
    """
    Immutable collection of reference entries.

    Args:
        entries: Reference entries in catalog order. All embeddings must share
            one dimension and already be L2-normalized.
    """
    def __init__(self, entries: Sequence[ReferenceEntry]):
        if not entries:
            raise ValueError("ReferenceEmbeddingStore needs at least one entry")

        self._entries: Tuple[ReferenceEntry, ...] = tuple(entries)
        matrix = np.stack([as_vector(entry.embedding) for entry in self._entries])
        matrix.flags.writeable = False
        self._matrix = matrix

    @classmethod
    def build(cls,
              examples: Sequence[TaskExample],
              encoder: EncoderBase) -> "ReferenceEmbeddingStore":
        """
        Encodes every example text and wraps the results as reference entries.

        Args:
            examples: Labeled examples in catalog order.
            encoder: Loaded encoder; the same one must later encode queries.

        Returns:
            A new store with one entry per example.

        Raises:
            DimensionMismatch: If the encoder output does not match its declared dimension.
        """
        if not examples:
            raise ValueError("Cannot build a reference store without examples")

        texts = [example.text for example in examples]
        logger.info(f"Computing reference embeddings for {len(texts)} examples...")
        embeddings = np.asarray(encoder.extract_embeddings(texts), dtype=np.float32)

        if embeddings.ndim != 2 or embeddings.shape[0] != len(texts):
            raise ValueError(f"Encoder returned shape {embeddings.shape} for {len(texts)} texts")
        if embeddings.shape[1] != encoder.dimension:
            raise DimensionMismatch(encoder.dimension, embeddings.shape[1])

        entries = []
        for example, embedding in zip(examples, embeddings):
            vector = embedding.copy()
            vector.flags.writeable = False
            entries.append(ReferenceEntry(embedding=vector,
                                          category=example.category,
                                          subcategory=example.subcategory))
        return cls(entries)

    @property
    def entries(self) -> Tuple[ReferenceEntry, ...]:
        return self._entries

    @property
    def dimension(self) -> int:
        return self._matrix.shape[1]

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, query: np.ndarray, top_k: int) -> List[ClassificationVote]:
        """
        Finds the reference entries most similar to a normalized query.

        Args:
            query: Normalized query embedding.
            top_k: Number of votes to return; capped at the store size.

        Returns:
            Votes sorted by similarity descending, equal similarities in catalog order.
        """
        scores = similarity_scores(query, self._matrix)
        k = min(top_k, len(self._entries))
        # Stable sort keeps catalog order among equal scores
        order = np.argsort(-scores, kind="stable")[:k]
        return [ClassificationVote(category=self._entries[i].category,
                                   subcategory=self._entries[i].subcategory,
                                   similarity=float(scores[i]))
                for i in order]
