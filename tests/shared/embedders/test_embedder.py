import pytest
import torch
from unittest.mock import Mock, patch
from sentence_transformers import SentenceTransformer
import numpy as np

from greenpick.core.errors import DimensionMismatch, EncoderUnavailable
from greenpick.shared.embedders import Embedder

TEST_MODEL_NAME = 'test-model'
TEST_DEVICE = 'cpu'
TEST_DIM = 4

@pytest.fixture()
def mock_sentence_transformer():
    with patch('greenpick.shared.embedders.embedder.SentenceTransformer') as mock_st:
        mock_model = Mock(spec=SentenceTransformer)
        mock_model.eval.return_value.requires_grad_ = Mock(return_value=mock_model)
        mock_model.get_sentence_embedding_dimension.return_value = TEST_DIM
        mock_st.return_value = mock_model
        yield mock_st, mock_model

@pytest.fixture()
def mock_snapshot_download():
    with patch('greenpick.shared.embedders.embedder.snapshot_download') as mock_download:
        mock_download.return_value = '/cache/test-model'
        yield mock_download

def make_embedder(**kwargs):
    args = dict(model_name=TEST_MODEL_NAME, device_name=TEST_DEVICE, dimension=TEST_DIM)
    args.update(kwargs)
    return Embedder(**args)

def test_instances_are_independent():
    embedder1 = make_embedder()
    embedder2 = make_embedder(model_name='other-model')

    assert embedder1 is not embedder2
    assert embedder1.model_name != embedder2.model_name
    assert embedder1.is_loaded is False

def test_construction_does_not_load_model(mock_sentence_transformer):
    mock_st, _ = mock_sentence_transformer

    embedder = make_embedder()

    mock_st.assert_not_called()
    assert embedder.model is None
    assert embedder.dimension == TEST_DIM

def test_download_uses_hub_cache(mock_snapshot_download):
    embedder = make_embedder(cache_dir='/tmp/hf')
    embedder.download()

    mock_snapshot_download.assert_called_once_with(repo_id=TEST_MODEL_NAME, cache_dir='/tmp/hf')
    assert embedder._model_path == '/cache/test-model'

@patch('greenpick.shared.embedders.embedder.logger')
def test_download_failure_raises_encoder_unavailable(mock_logger, mock_snapshot_download):
    mock_snapshot_download.side_effect = OSError("connection refused")

    embedder = make_embedder()
    with pytest.raises(EncoderUnavailable, match="connection refused"):
        embedder.download()

    mock_logger.error.assert_called_once()

def test_load_after_download_uses_snapshot_path(mock_sentence_transformer, mock_snapshot_download):
    mock_st, mock_model = mock_sentence_transformer

    embedder = make_embedder()
    embedder.download()
    embedder.load()

    mock_st.assert_called_once_with('/cache/test-model', device=torch.device(TEST_DEVICE))
    mock_model.eval.assert_called_once()
    mock_model.eval().requires_grad_.assert_called_once_with(False)
    assert embedder.is_loaded is True

def test_load_is_idempotent(mock_sentence_transformer):
    mock_st, _ = mock_sentence_transformer

    embedder = make_embedder()
    embedder.load()
    embedder.load()

    assert mock_st.call_count == 1

def test_load_model_success_and_eval_mode(mock_sentence_transformer):
    mock_st, mock_model = mock_sentence_transformer

    embedder = make_embedder()
    result = embedder._load_model(TEST_MODEL_NAME)

    assert result == mock_model
    mock_model.eval.assert_called()
    mock_model.eval().requires_grad_.assert_called_with(False)

@patch('greenpick.shared.embedders.embedder.logger')
def test_model_initialization_failures(mock_logger, mock_sentence_transformer):
    mock_st, mock_model = mock_sentence_transformer
    mock_st.side_effect = Exception("Model load failed")

    embedder = make_embedder()
    with pytest.raises(EncoderUnavailable, match="Model load failed"):
        embedder.load()

    mock_logger.error.assert_called_once()
    assert embedder.is_loaded is False

    mock_st.side_effect = None
    embedder.load()
    assert embedder.is_loaded is True

def test_load_dimension_mismatch(mock_sentence_transformer):
    _, mock_model = mock_sentence_transformer
    mock_model.get_sentence_embedding_dimension.return_value = 768

    embedder = make_embedder()
    with pytest.raises(DimensionMismatch, match="expected 4, got 768"):
        embedder.load()

def test_extract_embeddings_requires_loaded_model():
    embedder = make_embedder()

    with pytest.raises(EncoderUnavailable, match="not loaded"):
        embedder.extract_embeddings("test prompt")

def test_extract_embeddings_basic_inputs(mock_sentence_transformer):
    mock_st, mock_model = mock_sentence_transformer
    mock_embeddings = np.array([[0.5, 0.5, 0.5, 0.5]], dtype=np.float64)
    mock_model.encode.return_value = mock_embeddings

    embedder = make_embedder()
    embedder.load()

    with patch('greenpick.shared.embedders.embedder.SentenceTransformer', SentenceTransformer):
        result = embedder.extract_embeddings("test prompt")

    mock_model.encode.assert_called_once_with(
        ["test prompt"],
        batch_size=32,
        convert_to_numpy=True,
        normalize_embeddings=True,
        device=torch.device(TEST_DEVICE),
        show_progress_bar=False
    )
    assert result.dtype == np.float32
    assert result.shape == (1, TEST_DIM)

def test_extract_embeddings_list_inputs(mock_sentence_transformer):
    mock_st, mock_model = mock_sentence_transformer
    mock_embeddings = np.eye(TEST_DIM)[:2]
    mock_model.encode.return_value = mock_embeddings

    embedder = make_embedder(batch_size=8)
    embedder.load()

    prompts = ["prompt1", "prompt2"]
    with patch('greenpick.shared.embedders.embedder.SentenceTransformer', SentenceTransformer):
        result = embedder.extract_embeddings(prompts, show_progress_bar=True)

    mock_model.encode.assert_called_once_with(
        prompts,
        batch_size=8,
        convert_to_numpy=True,
        normalize_embeddings=True,
        device=torch.device(TEST_DEVICE),
        show_progress_bar=True
    )
    assert np.array_equal(result, mock_embeddings.astype(np.float32))

def test_extract_embeddings_encoder_errors_propagate(mock_sentence_transformer):
    mock_st, mock_model = mock_sentence_transformer
    mock_model.encode.side_effect = RuntimeError("Encoding failed")

    embedder = make_embedder()
    embedder.load()

    with pytest.raises(RuntimeError, match="Encoding failed"):
        with patch('greenpick.shared.embedders.embedder.SentenceTransformer', SentenceTransformer):
            embedder.extract_embeddings("test prompt")

def test_extract_embeddings_not_implemented_error(mock_sentence_transformer):
    embedder = make_embedder()
    embedder.load()
    embedder.model = "not a SentenceTransformer"

    with pytest.raises(NotImplementedError, match="Code for the model type"):
        with patch('greenpick.shared.embedders.embedder.SentenceTransformer', SentenceTransformer):
            embedder.extract_embeddings("test")
