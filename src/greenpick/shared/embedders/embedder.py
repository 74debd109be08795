"""
Text embedding generation module.

Provides the Embedder class that uses a SentenceTransformer model to convert
task descriptions into L2-normalized dense vectors. Model weights are fetched
from the Hugging Face Hub and loaded in two separate steps so callers can
report download and load progress independently.
"""
from typing import Optional, Union, List
import logging

import numpy as np
from numpy.typing import NDArray
from huggingface_hub import snapshot_download
from sentence_transformers import SentenceTransformer

from ...core.constants import DEFAULT_EMBED_MODEL, EMBED_BATCH_SIZE, EMBEDDING_DIM
from ...core.errors import DimensionMismatch, EncoderUnavailable
from ..utils import get_torch_device
from .base import EncoderBase

logger = logging.getLogger(__name__)


class Embedder(EncoderBase):
    """
    Encodes text with a SentenceTransformer model.

    Embeddings are always normalized by the model itself so that reference
    and query vectors go through exactly the same pipeline.

    Args:
        model_name: Hugging Face repository id of the SentenceTransformer model.
        device_name: Torch device identifier (e.g., 'cuda' or 'cpu').
        dimension: Expected embedding size; checked once the model is loaded.
        batch_size: Batch size for encoding lists of texts.
        cache_dir: Optional Hugging Face cache directory.
    """
    def __init__(self,
                 model_name: str = DEFAULT_EMBED_MODEL,
                 device_name: str = 'cpu',
                 dimension: int = EMBEDDING_DIM,
                 batch_size: int = EMBED_BATCH_SIZE,
                 cache_dir: Optional[str] = None):
        self.model_name = model_name
        self.device = get_torch_device(device_name)
        self.batch_size = batch_size
        self.cache_dir = cache_dir
        self.model: Optional[SentenceTransformer] = None
        self._dimension = dimension
        self._model_path: Optional[str] = None

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    def download(self) -> None:
        """Fetches the model snapshot into the local Hugging Face cache."""
        try:
            logger.info(f"Downloading SentenceTransformer model '{self.model_name}'...")
            self._model_path = snapshot_download(repo_id=self.model_name, cache_dir=self.cache_dir)
        except Exception as e:
            logger.error(f"Failed to download SentenceTransformer model: {self.model_name}", exc_info=True)
            raise EncoderUnavailable(f"Could not download '{self.model_name}': {e}") from e

    def load(self) -> None:
        """Loads the model in evaluation mode and checks its output dimension."""
        if self.model is None:
            self.model = self._load_model(self._model_path or self.model_name)

        actual = self.model.get_sentence_embedding_dimension()
        if actual is not None and actual != self._dimension:
            logger.error(f"Model '{self.model_name}' produces {actual}-dim embeddings, expected {self._dimension}")
            raise DimensionMismatch(self._dimension, actual)

    def _load_model(self, model_name_or_path: str) -> SentenceTransformer:
        """Loads and initializes a SentenceTransformer model in evaluation mode."""
        try:
            model = SentenceTransformer(model_name_or_path, device=self.device)
            model.eval().requires_grad_(False)
            return model
        except Exception as e:
            logger.error(f"Failed to load SentenceTransformer model: {model_name_or_path}", exc_info=True)
            raise EncoderUnavailable(f"Could not load '{model_name_or_path}': {e}") from e

    def extract_embeddings(self,
                           prompt: Union[str, List[str]],
                           show_progress_bar: bool = False) -> NDArray:
        """
        Encodes a text prompt or list of prompts into normalized embeddings.

        Args:
            prompt: The input text(s) to embed.
            show_progress_bar: Whether to display a progress bar during encoding.

        Returns:
            Float32 array of shape (n_texts, dimension).

        Raises:
            EncoderUnavailable: If the model has not been loaded.
            NotImplementedError: If model type is not supported.
        """
        if self.model is None:
            raise EncoderUnavailable("Embedder model is not loaded; call load() first")

        if isinstance(self.model, SentenceTransformer):
            texts = [prompt] if isinstance(prompt, str) else list(prompt)
            embeddings = self.model.encode(texts,
                                           batch_size=self.batch_size,
                                           convert_to_numpy=True,
                                           normalize_embeddings=True,
                                           device=self.device,
                                           show_progress_bar=show_progress_bar)
            return np.asarray(embeddings, dtype=np.float32)
        else:
            raise NotImplementedError(f"Code for the model type {type(self.model)} is not implemented")
