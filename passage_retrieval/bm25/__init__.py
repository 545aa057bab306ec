"""
BM25 (Best Match 25) lexical ranking core.

Components:
- tokenizer: Text tokenization with STRICT / LENIENT stop-word policies
- stemmer: Optional Snowball stemming (NLTK)
- index_builder: Inverted index with running average section length
- scorer: Okapi BM25 with global IDF over the indexed sections

Both retrievers (single-page sections and multi-document corpora) share
this core; heading and position boosting lives one level up.
"""

from .tokenizer import tokenize, StopWordPolicy, STRICT_STOPWORDS, LENIENT_STOPWORDS
from .stemmer import stem
from .index_builder import InvertedIndex, Posting
from .scorer import BM25Scorer

__all__ = [
    "tokenize",
    "StopWordPolicy",
    "STRICT_STOPWORDS",
    "LENIENT_STOPWORDS",
    "stem",
    "InvertedIndex",
    "Posting",
    "BM25Scorer",
]
