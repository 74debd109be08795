"""
Keyword and word-overlap task classifier.

Works without embeddings and never fails, which makes it the safety net when
the embedding classifier is unavailable. Three strategies run in cascade:

1. Jaccard overlap between the query words and each example's words,
   boosted when one word set contains the other.
2. Unigram/bigram/trigram lookup in a keyword index weighted by keyword
   specificity, with a multiplier for whole-keyword matches.
3. A fixed priority ordering of labels, so some answer is always returned.
"""

import logging
import math
from collections import defaultdict
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ...core import constants
from ...core.entities import (ClassificationResult, ClassificationSource,
                              LabelScore, TaskExample, TaskLabel)
from ...shared.text_processing import generate_ngrams, normalize_text, tokenize

logger = logging.getLogger(__name__)


class FallbackClassifier:
    """
    Deterministic keyword/word-overlap classifier.

    Args:
        examples: Labeled example texts, in catalog order.
        keywords: Keyword phrases per label.
        category_priority: Fixed label ordering used for tie-breaking and as
            the last-resort answer. Defaults to the order labels first appear
            in `keywords`, then `examples`.
        jaccard_threshold: Minimum boosted Jaccard score to accept a match.
        containment_boost: Added when one word set contains the other.
        exact_match_multiplier: Applied to whole-keyword n-gram matches.
        min_ngram_score: Minimum keyword score to accept a match.
    """
    def __init__(self,
                 examples: Sequence[TaskExample],
                 keywords: Mapping[TaskLabel, Sequence[str]],
                 category_priority: Optional[Sequence[TaskLabel]] = None,
                 jaccard_threshold: float = constants.JACCARD_THRESHOLD,
                 containment_boost: float = constants.CONTAINMENT_BOOST,
                 exact_match_multiplier: float = constants.EXACT_MATCH_MULTIPLIER,
                 min_ngram_score: float = constants.MIN_NGRAM_SCORE):
        self.jaccard_threshold = jaccard_threshold
        self.containment_boost = containment_boost
        self.exact_match_multiplier = exact_match_multiplier
        self.min_ngram_score = min_ngram_score

        self.priority = self._build_priority(examples, keywords, category_priority)
        if not self.priority:
            raise ValueError("FallbackClassifier needs at least one label")
        self._rank = {label: i for i, label in enumerate(self.priority)}

        self._example_words: List[Tuple[TaskLabel, FrozenSet[str]]] = [
            (example.label, frozenset(tokenize(example.text))) for example in examples
        ]
        self._phrase_index, self._word_index = self._build_keyword_index(keywords)

    @classmethod
    def from_taxonomy(cls, taxonomy, category_priority: Optional[Sequence[TaskLabel]] = None,
                      **kwargs) -> "FallbackClassifier":
        """Builds the classifier from a `catalog.TaskTaxonomy`."""
        return cls(examples=taxonomy.examples(),
                   keywords=taxonomy.keywords(),
                   category_priority=category_priority or None,
                   **kwargs)

    @staticmethod
    def _build_priority(examples: Sequence[TaskExample],
                        keywords: Mapping[TaskLabel, Sequence[str]],
                        category_priority: Optional[Sequence[TaskLabel]]) -> List[TaskLabel]:
        known = list(dict.fromkeys([*keywords.keys(), *(example.label for example in examples)]))
        if not category_priority:
            return known

        # Configured labels first, then any label the configuration left out
        ordered = [label for label in dict.fromkeys(category_priority) if label in known]
        unknown = [label for label in category_priority if label not in known]
        if unknown:
            logger.warning(f"Ignoring unknown labels in category priority: {', '.join(map(str, unknown))}")
        return ordered + [label for label in known if label not in ordered]

    def _build_keyword_index(self, keywords: Mapping[TaskLabel, Sequence[str]]
                             ) -> Tuple[Dict[str, Dict[TaskLabel, float]], Dict[str, Dict[TaskLabel, float]]]:
        """
        Precomputes keyword weights.

        A phrase is weighted by its rarity across labels (smoothed inverse
        document frequency) times its word count, so long and rare phrases
        count most. Words that only occur inside multi-word phrases are
        indexed separately with their own rarity.
        """
        phrases: Dict[TaskLabel, List[str]] = {}
        for label, label_keywords in keywords.items():
            normalized = [normalize_text(keyword) for keyword in label_keywords]
            phrases[label] = list(dict.fromkeys(k for k in normalized if k))

        n_labels = max(len(phrases), 1)
        phrase_df: Dict[str, int] = defaultdict(int)
        word_df: Dict[str, int] = defaultdict(int)
        for label_phrases in phrases.values():
            for phrase in label_phrases:
                phrase_df[phrase] += 1
            for word in {w for phrase in label_phrases for w in tokenize(phrase) if " " in phrase}:
                word_df[word] += 1

        phrase_index: Dict[str, Dict[TaskLabel, float]] = defaultdict(dict)
        word_index: Dict[str, Dict[TaskLabel, float]] = defaultdict(dict)
        for label, label_phrases in phrases.items():
            for phrase in label_phrases:
                idf = math.log(1 + n_labels / phrase_df[phrase])
                phrase_index[phrase][label] = idf * len(phrase.split())
                if " " not in phrase:
                    continue
                for word in tokenize(phrase):
                    word_index[word][label] = math.log(1 + n_labels / word_df[word])

        return dict(phrase_index), dict(word_index)

    def classify(self, text: str) -> ClassificationResult:
        """
        Classifies a task description. Never raises and never returns None.

        Args:
            text: Free-text task description.

        Returns:
            The first confident result of the cascade, or the priority fallback.
        """
        normalized = normalize_text(text or "")

        result = self.match_examples(normalized)
        if result is not None:
            return result

        result = self.match_keywords(normalized)
        if result is not None:
            return result

        logger.info("No confident keyword match; using priority fallback.")
        return self.priority_result()

    def match_examples(self, normalized: str) -> Optional[ClassificationResult]:
        """
        Jaccard overlap against every example's word set.

        Returns:
            A result when the best boosted score reaches the threshold, else None.
        """
        query_words = frozenset(tokenize(normalized))
        if not query_words:
            return None

        best_per_label: Dict[TaskLabel, float] = {}
        for label, words in self._example_words:
            if not words:
                continue
            score = len(query_words & words) / len(query_words | words)
            if score > 0 and (words <= query_words or query_words <= words):
                score += self.containment_boost
            score = min(score, 1.0)
            if score > best_per_label.get(label, 0.0):
                best_per_label[label] = score

        if not best_per_label:
            return None

        winner = self._best(best_per_label)
        if best_per_label[winner] < self.jaccard_threshold:
            return None

        return self._result(winner, best_per_label[winner], best_per_label, ClassificationSource.JACCARD)

    def match_keywords(self, normalized: str) -> Optional[ClassificationResult]:
        """
        N-gram lookup in the keyword index.

        Returns:
            A result when the best label scores at least `min_ngram_score`, else None.
        """
        tokens = tokenize(normalized, drop_stopwords=False)
        if not tokens:
            return None

        scores: Dict[TaskLabel, float] = defaultdict(float)
        hits: Dict[TaskLabel, int] = defaultdict(int)
        padded = f" {normalized} "
        ngrams = set(generate_ngrams(tokens, constants.MAX_NGRAM_SIZE))

        for phrase, labels in self._phrase_index.items():
            n_words = phrase.count(" ") + 1
            if n_words <= constants.MAX_NGRAM_SIZE:
                matched = phrase in ngrams
            else:
                matched = f" {phrase} " in padded
            if not matched:
                continue
            for label, weight in labels.items():
                scores[label] += weight * self.exact_match_multiplier
                hits[label] += 1

        for word in ngrams:
            if word in self._phrase_index or word not in self._word_index:
                continue
            for label, weight in self._word_index[word].items():
                scores[label] += weight
                hits[label] += 1

        if not scores:
            return None

        winner = self._best(scores)
        if scores[winner] < self.min_ngram_score:
            return None

        confidence = scores[winner] / sum(scores.values())
        return self._result(winner, confidence, scores, ClassificationSource.NGRAM, hits)

    def priority_result(self) -> ClassificationResult:
        """The last-resort answer: the first label of the fixed priority order."""
        top = self.priority[0]
        return ClassificationResult(category=top.category,
                                    subcategory=top.subcategory,
                                    confidence=constants.PRIORITY_FALLBACK_CONFIDENCE,
                                    source=ClassificationSource.PRIORITY,
                                    candidates=list(self.priority))

    def _best(self, scores: Mapping[TaskLabel, float]) -> TaskLabel:
        """Highest score wins; equal scores go to the label earlier in the priority order."""
        return min(scores, key=lambda label: (-scores[label], self._rank.get(label, len(self._rank))))

    def _result(self,
                winner: TaskLabel,
                confidence: float,
                scores: Mapping[TaskLabel, float],
                source: ClassificationSource,
                hits: Optional[Mapping[TaskLabel, int]] = None) -> ClassificationResult:
        ranked = sorted(scores, key=lambda label: (-scores[label], self._rank.get(label, len(self._rank))))
        breakdown = [LabelScore(category=label.category, subcategory=label.subcategory,
                                weight=scores[label], votes=(hits or {}).get(label, 1))
                     for label in ranked]
        logger.debug(f"Fallback {source.value} match: {winner} ({confidence:.3f})")
        return ClassificationResult(category=winner.category,
                                    subcategory=winner.subcategory,
                                    confidence=min(max(confidence, 0.0), 1.0),
                                    vote_breakdown=breakdown,
                                    source=source,
                                    candidates=ranked)
