import numpy as np
import pytest
import torch

from greenpick.core.errors import DimensionMismatch
from greenpick.shared.similarity import as_vector, cosine_similarity, l2_normalize, similarity_scores


def random_unit_vector(rng, dim=384):
    return l2_normalize(rng.standard_normal(dim).astype(np.float32))


def test_as_vector_accepts_list_ndarray_and_tensor():
    expected = np.array([0.6, 0.8], dtype=np.float32)

    for value in ([0.6, 0.8], np.array([[0.6, 0.8]]), torch.tensor([0.6, 0.8])):
        result = as_vector(value)
        assert result.dtype == np.float32
        assert result.shape == (2,)
        assert np.allclose(result, expected)


def test_l2_normalize_unit_length_and_zero_vector():
    vector = l2_normalize(np.array([3.0, 4.0]))
    assert np.isclose(np.linalg.norm(vector), 1.0)

    zero = np.zeros(3)
    assert np.array_equal(l2_normalize(zero), zero)


def test_cosine_similarity_identity():
    rng = np.random.default_rng(0)
    for _ in range(10):
        v = random_unit_vector(rng)
        assert cosine_similarity(v, v) == pytest.approx(1.0, abs=1e-5)


def test_cosine_similarity_symmetry_and_range():
    rng = np.random.default_rng(1)
    for _ in range(10):
        a, b = random_unit_vector(rng), random_unit_vector(rng)
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a), abs=1e-6)
        assert -1.0 <= cosine_similarity(a, b) <= 1.0


def test_cosine_similarity_opposite_vectors():
    v = l2_normalize(np.array([1.0, 2.0, 3.0]))
    assert cosine_similarity(v, -v) == pytest.approx(-1.0, abs=1e-6)


def test_cosine_similarity_dimension_mismatch():
    with pytest.raises(DimensionMismatch, match="expected 3, got 2"):
        cosine_similarity(np.ones(3), np.ones(2))


def test_similarity_scores_against_matrix():
    matrix = np.eye(3, dtype=np.float32)
    query = np.array([0.0, 1.0, 0.0], dtype=np.float32)

    scores = similarity_scores(query, matrix)

    assert scores.tolist() == [0.0, 1.0, 0.0]


def test_similarity_scores_dimension_mismatch():
    with pytest.raises(DimensionMismatch):
        similarity_scores(np.ones(4), np.eye(3))

    with pytest.raises(ValueError):
        similarity_scores(np.ones(3), np.ones(3))
