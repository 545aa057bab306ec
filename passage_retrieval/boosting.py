"""
Heading and position heuristics for single-page retrieval.

Within one page, the heading hierarchy and section order are strong
relevance signals. Raw BM25 comes from section content; these factors
scale it, in this order:

1. Position:    2.0x for the first section, linear decay to 1.0x at the window end
2. Heading:     up to 2.5x when the query matches the section heading
3. Specificity: 1.2x for short (1-3 word) headings

Headingless sections are never penalised: every factor is 1.0x for them.
Index-time heading amplification (heading tokens repeated 3x in the
token stream) is applied by SectionRetriever when it builds the index.
"""

from typing import List, Sequence

# Headings produced by fallback extraction when a page has no real headings
GENERIC_HEADINGS = frozenset([
    'content', 'main content', 'additional content', 'page content'
])

HEADING_BOOST_MAX = 2.5
SPECIFIC_HEADING_BOOST = 1.2
SPECIFIC_HEADING_MAX_WORDS = 3


def position_multiplier(position: int, window: int = 20) -> float:
    """
    Early sections are more important.

    Returns:
        2.0 for position 0, decaying linearly to 1.0 at position >= window
    """
    normalized = min(max(position, 0) / window, 1.0)
    return 2.0 - normalized


def heading_similarity(
    query_terms: Sequence[str],
    heading_tokens: Sequence[str],
    heading: str
) -> float:
    """
    Similarity between query and heading in [0, 1].

    Fraction of query terms that occur in the heading, or 1.0 when the
    heading contains the whole query phrase (or the phrase contains the
    heading). 0 for a missing or blank heading.
    """
    if not heading or not heading.strip():
        return 0.0
    if not query_terms or not heading_tokens:
        return 0.0

    heading_terms = set(heading_tokens)
    matches = sum(1 for term in query_terms if term in heading_terms)
    overlap = matches / len(query_terms)

    query_phrase = " ".join(query_terms)
    heading_lower = heading.strip().lower()
    if query_phrase in heading_lower or heading_lower in query_phrase:
        return 1.0
    return overlap


def heading_multiplier(similarity: float) -> float:
    """Moderate heading boost: content stays the primary factor"""
    if similarity > 0.8:
        return HEADING_BOOST_MAX
    if similarity > 0.5:
        return 1.5 + similarity
    if similarity > 0:
        return 1.0 + similarity * 0.5
    return 1.0


def specificity_multiplier(heading: str) -> float:
    """Short headings are usually specific topics; long ones are sub-details"""
    if not heading or not heading.strip():
        return 1.0
    if heading.strip().lower() in GENERIC_HEADINGS:
        return 1.0
    if len(heading.split()) <= SPECIFIC_HEADING_MAX_WORDS:
        return SPECIFIC_HEADING_BOOST
    return 1.0


def amplify_heading(heading_tokens: List[str], body_tokens: List[str], repeat: int = 3) -> List[str]:
    """Token stream with heading tokens repeated ahead of the body"""
    return heading_tokens * repeat + body_tokens


def boosted_score(
    raw_score: float,
    position: int,
    similarity: float,
    heading: str,
    window: int = 20
) -> float:
    """Apply position, heading and specificity multipliers to a raw BM25 score"""
    score = raw_score * position_multiplier(position, window)
    score *= heading_multiplier(similarity)
    score *= specificity_multiplier(heading)
    return score
