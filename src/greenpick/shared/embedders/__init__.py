from .base import EncoderBase
from .embedder import Embedder
