"""
Tokenizer for BM25 text processing.

Tokenization pipeline:
1. Lowercase conversion
2. Split into words (policy-specific rules, see below)
3. Filter stopwords (policy-specific list)
4. Optional Snowball stemming ("architectures" → "architectur")
5. Return list of meaningful tokens

Two stop-word policies share this one code path:

STRICT (cross-corpus retrieval):
    Split on every non-word character, drop every stopword.

LENIENT (single-corpus retrieval):
    Keep internal hyphens ("blue-green" stays one token), drop a stopword
    only if it is not 2 characters long and was not written in upper case.
    Upper-case stopwords are usually acronyms ("IT", "US") in page text;
    single letters ("I", "A") are never treated as acronyms.
"""

import re
from enum import Enum
from typing import List, Optional

from .stemmer import stem


class StopWordPolicy(Enum):
    """Stop-word filtering rules applied by tokenize()"""
    STRICT = "strict"    # Plain stopword filter, no exceptions
    LENIENT = "lenient"  # Keeps 2-char words, acronyms, internal hyphens


# Stopwords for STRICT policy (multi-document corpora)
STRICT_STOPWORDS = frozenset([
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'but', 'by',
    'for', 'from', 'had', 'has', 'have', 'he', 'how', 'in', 'is', 'it', 'its',
    'of', 'on', 'that', 'the', 'they', 'this', 'to',
    'was', 'what', 'when', 'where', 'which', 'who', 'why', 'will', 'with'
])

# Stopwords for LENIENT policy (single-document sections)
LENIENT_STOPWORDS = frozenset([
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'been', 'but', 'by',
    'can', 'could', 'did', 'do', 'does', 'for', 'from', 'had', 'has', 'have',
    'he', 'i', 'in', 'is', 'it', 'may', 'might', 'must', 'of', 'on', 'or',
    'she', 'should', 'that', 'the', 'these', 'they', 'this', 'those', 'to',
    'was', 'we', 'were', 'will', 'with', 'would', 'you'
])

_NON_WORD = re.compile(r'\W+')
_NON_WORD_KEEP_HYPHEN = re.compile(r'[^\w\s-]')


def tokenize(
    text: Optional[str],
    policy: StopWordPolicy = StopWordPolicy.STRICT,
    stem_tokens: bool = False
) -> List[str]:
    """
    Tokenize text for BM25 scoring with stopword removal.

    Args:
        text: Input text to tokenize (None and "" are allowed)
        policy: Stop-word policy (STRICT or LENIENT)
        stem_tokens: Apply Snowball stemming to surviving tokens

    Returns:
        List of lowercase tokens without stopwords, in input order

    Examples:
        >>> tokenize("The pricing of the Pro plan")
        ['pricing', 'pro', 'plan']

        >>> tokenize("IT support for blue-green deploys", StopWordPolicy.LENIENT)
        ['it', 'support', 'blue-green', 'deploys']

        >>> tokenize("   ")
        []
    """
    if not text:
        return []

    if policy is StopWordPolicy.LENIENT:
        tokens = _tokenize_lenient(text)
    else:
        tokens = [
            t for t in _NON_WORD.split(text.lower())
            if t and t not in STRICT_STOPWORDS
        ]

    if stem_tokens:
        tokens = [stem(t) for t in tokens]

    return tokens


def _tokenize_lenient(text: str) -> List[str]:
    # Case must be inspected before lowercasing to spot acronyms
    tokens = []
    for raw in _NON_WORD_KEEP_HYPHEN.sub(' ', text).split():
        raw = raw.strip('-')
        if not raw:
            continue
        term = raw.lower()
        is_acronym = len(raw) > 1 and raw.isupper()
        if term in LENIENT_STOPWORDS and len(term) != 2 and not is_acronym:
            continue
        tokens.append(term)
    return tokens
