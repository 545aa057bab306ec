"""
Query refinement for conversational retrieval.

Follow-up questions are often too vague for lexical matching on their
own ("tell me more", "how fast is it?"). When the caller passes the
user's recent messages, a few topic terms mined from them are prepended
to the query. "What is X?" questions are reduced to X.

This module only rewrites query strings; it keeps no conversation state.
"""

import re
from typing import Iterable, List, Sequence

MAX_CONTEXT_MESSAGES = 3
MAX_CONTEXT_TERMS = 3
SHORT_QUESTION_WORDS = 8

_CAPITALIZED = re.compile(r'\b[A-Z][a-z]+\b')
_QUOTED = re.compile(r'"([^"]+)"')
_ABOUT = re.compile(r'(?:about|explain|regarding)\s+([A-Za-z0-9\s]+?)(?:\?|$|\.)', re.IGNORECASE)
_DEFINITION = re.compile(r'what\s+(?:is|are)\s+', re.IGNORECASE)
_REFERENTS = frozenset(['it', 'this', 'that'])


def is_vague_question(question: str) -> bool:
    """True for questions that lean on earlier context ("explain it", "tell me more")"""
    lower = question.lower().strip()
    words = lower.split()
    bare_words = {w.strip('?!.,;:"\'') for w in words}
    return (
        bool(bare_words & _REFERENTS)
        or (lower.startswith('what') and len(words) <= 5)
        or lower.startswith('tell me more')
        or (lower.startswith('explain') and len(words) <= 3)
    )


def extract_context_terms(messages: Sequence[str]) -> List[str]:
    """
    Topic terms from the most recent user messages.

    Collects capitalised words (likely proper nouns), quoted phrases and
    the phrase after about/explain/regarding, deduplicated in order of
    appearance. Terms of 2 characters or fewer are dropped.

    Returns:
        At most 3 terms
    """
    terms: List[str] = []
    for message in list(messages)[-MAX_CONTEXT_MESSAGES:]:
        terms.extend(_CAPITALIZED.findall(message))
        terms.extend(_QUOTED.findall(message))
        about = _ABOUT.search(message)
        if about:
            terms.append(about.group(1).strip())

    unique: List[str] = []
    for term in terms:
        if len(term) > 2 and term not in unique:
            unique.append(term)
    return unique[:MAX_CONTEXT_TERMS]


def refine_query(question: str, recent_user_messages: Iterable[str] = ()) -> str:
    """
    Rewrite a user question into a search query.

    Args:
        question: The question as typed
        recent_user_messages: Earlier user messages, oldest first

    Returns:
        Search query string

    Examples:
        >>> refine_query("How fast is it?", ["Tell me about the Falcon rocket"])
        'Tell Falcon the Falcon rocket How fast is it?'
        >>> refine_query("What is BM25?")
        'BM25'
    """
    if not question:
        return ""

    search_query = question
    messages = list(recent_user_messages)
    is_short = len(question.split()) <= SHORT_QUESTION_WORDS

    if messages and (is_short or is_vague_question(question)):
        context_terms = extract_context_terms(messages)
        if context_terms:
            search_query = f"{' '.join(context_terms)} {question}"

    # Definition questions: search for the subject alone
    lower = question.lower()
    if lower.startswith('what is') or lower.startswith('what are'):
        subject = _DEFINITION.sub('', question, count=1).replace('?', '').strip()
        if subject:
            search_query = subject

    return search_query
