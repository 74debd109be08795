"""
Named constants for the classification and ranking policy.

Every threshold and multiplier used by the classifiers and the model selector
lives here so the policy can be audited in one place. The configuration
defaults in `shared.config` are derived from these values and may override
them at runtime.
"""

# ---------------------------- Embeddings ---------------------------- #

# Output size of sentence-transformers/all-MiniLM-L6-v2
EMBEDDING_DIM = 384
DEFAULT_EMBED_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
EMBED_BATCH_SIZE = 32

# --------------------- Embedding classifier policy --------------------- #

# Number of nearest reference entries that vote on a query
TOP_K = 5
# Minimum share of the similarity-weighted vote the winner must hold
CONFIDENCE_THRESHOLD = 0.70
# Minimum number of the top-K votes that must agree with the winner
MIN_AGREEING_VOTES = 3
# Upper bound on waiting for the encoder to become ready
READY_TIMEOUT_SECONDS = 30.0

# ----------------------- Fallback classifier policy ----------------------- #

JACCARD_THRESHOLD = 0.5
# Added to a Jaccard score when one word set contains the other
CONTAINMENT_BOOST = 0.25
# Applied when a query n-gram equals a whole keyword
EXACT_MATCH_MULTIPLIER = 1.5
# A keyword match below this total score is not trusted
MIN_NGRAM_SCORE = 1.0
MAX_NGRAM_SIZE = 3
PRIORITY_FALLBACK_CONFIDENCE = 0.0

# ------------------------------ Input ------------------------------ #

MAX_QUERY_LENGTH = 500
MAX_CLARIFICATION_CANDIDATES = 3

# ------------------------------ Selection ------------------------------ #

# Upper size bound (MB) of each tier, in priority order. xlarge is unbounded.
LIGHTWEIGHT_MAX_MB = 500
STANDARD_MAX_MB = 4000
ADVANCED_MAX_MB = 20000

DEFAULT_MAX_RESULTS = 3
MAX_ACCURACY_THRESHOLD = 100
