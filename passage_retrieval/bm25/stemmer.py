"""
Snowball Stemmer for English (via NLTK).

Optional tokenizer stage (RetrieverConfig.stemming). Off by default so
"pricing" only matches "pricing"; when enabled, inflected forms share a
term ("plans" / "plan" → "plan") in both the index and the query.

Snowball is the improved Porter2 algorithm (https://snowballstem.org/)
used by Elasticsearch, Solr and Lucene. It needs no corpus downloads.

Examples:
- "architectures" → "architectur"
- "strategies" → "strategi"
- "running" → "run"
"""

from functools import lru_cache

from nltk.stem.snowball import SnowballStemmer

# Initialize stemmer once (stateless, reusable across retrievers)
_stemmer = SnowballStemmer('english')


@lru_cache(maxsize=16384)
def stem(word: str) -> str:
    """
    Stem a single word using Snowball algorithm.

    Args:
        word: Lowercase word to stem

    Returns:
        Stemmed word

    Examples:
        >>> stem("searching")
        'search'
        >>> stem("plans")
        'plan'
    """
    return _stemmer.stem(word)
