"""
Task classification module for the GreenPick model advisor.

This module turns free-text task descriptions into (category, subcategory)
labels. The embedding classifier is preferred; the fallback classifier needs
no model and always answers.

Classes:
    ReferenceEmbeddingStore: Normalized example embeddings with top-K search
    EmbeddingClassifier: Similarity-weighted nearest-neighbour voting
    FallbackClassifier: Jaccard, keyword n-gram and priority cascade
"""

from .embedding_classifier import EmbeddingClassifier, aggregate_votes
from .fallback_classifier import FallbackClassifier
from .reference_store import ReferenceEmbeddingStore
