"""
Vector similarity engine.

Similarity between two embeddings is their dot product. All inputs must
already be L2-normalized: nothing here renormalizes, so an unnormalized
vector silently skews every confidence value computed downstream.
"""

import numpy as np
import torch

from ..core.entities.types import EmbeddingArray
from ..core.errors import DimensionMismatch


def as_vector(embedding: EmbeddingArray) -> np.ndarray:
    """
    Converts an embedding into a contiguous 1-D float32 NumPy array.

    Args:
        embedding: A list of floats, NumPy array or torch.Tensor.

    Returns:
        The embedding as a flat float32 array.
    """
    if isinstance(embedding, torch.Tensor):
        array = embedding.detach().cpu().numpy()
    elif isinstance(embedding, np.ndarray):
        array = embedding
    else:
        array = np.asarray(embedding)
    return np.ascontiguousarray(array, dtype=np.float32).reshape(-1)


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    """Returns the unit-length version of `vector`; zero vectors are returned unchanged."""
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity of two unit-normalized vectors.

    Args:
        a: First normalized vector.
        b: Second normalized vector, same dimension as `a`.

    Returns:
        Similarity in [-1, 1].

    Raises:
        DimensionMismatch: If the vectors have different lengths.
    """
    a, b = as_vector(a), as_vector(b)
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatch(a.shape[0], b.shape[0])
    return float(np.clip(np.dot(a, b), -1.0, 1.0))


def similarity_scores(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Similarity of one normalized query against each row of a normalized matrix.

    Args:
        query: Normalized vector of dimension d.
        matrix: Array of shape (n, d) holding normalized vectors.

    Returns:
        Array of n similarities.

    Raises:
        DimensionMismatch: If the query and matrix dimensions differ.
    """
    query = as_vector(query)
    if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:
        expected = matrix.shape[-1] if matrix.ndim else 0
        raise DimensionMismatch(expected, query.shape[0])
    return np.clip(matrix @ query, -1.0, 1.0)
