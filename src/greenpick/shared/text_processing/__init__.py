from .normalizer import STOPWORDS, generate_ngrams, normalize_text, tokenize
