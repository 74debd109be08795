"""
Abstract base class for text encoders.

The embedding classifier depends only on this interface so that tests (and
alternative backends) can inject a deterministic encoder in place of the
sentence-transformers model.
"""

from abc import ABC, abstractmethod
from typing import List, Union

from numpy.typing import NDArray


class EncoderBase(ABC):
    """
    Interface of a text encoder producing L2-normalized embeddings.

    Initialization is split into `download` and `load` so the classifier can
    report progress for each step. Both default to no-ops for encoders that
    need no preparation.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of the vectors produced by `extract_embeddings`."""
        pass

    def download(self) -> None:
        """Fetch model weights. Blocking; called off the event loop."""
        return None

    def load(self) -> None:
        """Load the model into memory. Blocking; called off the event loop."""
        return None

    @abstractmethod
    def extract_embeddings(self, prompt: Union[str, List[str]]) -> NDArray:
        """
        Encode text into L2-normalized embeddings.

        Args:
            prompt: A single text or a list of texts.

        Returns:
            Array of shape (n_texts, dimension).
        """
        pass
