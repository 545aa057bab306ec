"""
Context assembly: turn ranked passages into a prompt-ready text block.

The retrievers stop at ranked results; this module is the hand-off to
answer generation. It fits the top passages into a character budget:

1. Estimate how much of the model's context window is left
   (budget = max_total_tokens - prompt - reserved, at least 500 tokens)
2. Split the budget evenly across passages, minus a per-passage overhead
3. Truncate each passage, preferring a sentence boundary in the last 30%

Token estimates use the rough 1 token ≈ 4 characters rule.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from .models import SectionResult, SourcedResult

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
MAX_TOTAL_TOKENS = 3500
RESERVED_TOKENS = 700       # Instructions (200) + answer (500)
MIN_CONTEXT_TOKENS = 500
SENTENCE_BOUNDARY_RATIO = 0.7


def estimate_tokens(text: Optional[str]) -> int:
    """Rough token count of text"""
    if not text:
        return 0
    return -(-len(text) // CHARS_PER_TOKEN)


def available_context_chars(
    prompt_parts: Iterable[str] = (),
    max_total_tokens: int = MAX_TOTAL_TOKENS,
    reserved_tokens: int = RESERVED_TOKENS,
    min_context_tokens: int = MIN_CONTEXT_TOKENS,
) -> int:
    """
    Characters left for retrieved passages.

    Args:
        prompt_parts: Everything else sent to the model (system prompt,
            history messages, the question)
        max_total_tokens: Model context window
        reserved_tokens: Room kept for instructions and the answer
        min_context_tokens: Floor for the passage budget

    Returns:
        Character budget for build_*_context()
    """
    used = sum(estimate_tokens(part) for part in prompt_parts) + reserved_tokens
    available = max(max_total_tokens - used, min_context_tokens)
    logger.debug(f"Token budget: {used}/{max_total_tokens} used, {available} available for context")
    return available * CHARS_PER_TOKEN


def section_budget(available_chars: int, count: int, overhead: int, minimum: int) -> int:
    """Per-passage character budget"""
    if count <= 0:
        return minimum
    return max(available_chars // count - overhead, minimum)


def truncate_passage(text: str, max_chars: int) -> str:
    """
    Shorten text to about max_chars, ending at a sentence when possible.

    Cuts at max_chars; if a '.', '?' or '!' occurs past 70% of the budget
    the cut moves back to it. Appends '...' when text was dropped.
    """
    if not text or len(text) <= max_chars:
        return text or ""

    truncated = text[:max_chars]
    last_sentence = max(truncated.rfind('.'), truncated.rfind('?'), truncated.rfind('!'))
    if last_sentence > max_chars * SENTENCE_BOUNDARY_RATIO:
        truncated = text[:last_sentence + 1]

    return truncated + ('...' if len(truncated) < len(text) else '')


def build_section_context(
    results: Sequence[SectionResult],
    available_chars: int = MAX_TOTAL_TOKENS * CHARS_PER_TOKEN,
    overhead: int = 50,
    minimum: int = 300,
) -> str:
    """
    Context block for single-page results.

    Format:
        [Section 1: "Pricing"]
        Our plans cost $10/month

        [Section 2: "Features"]
        ...
    """
    if not results:
        return ""

    max_chars = section_budget(available_chars, len(results), overhead, minimum)
    logger.debug(
        f"Context budget: {available_chars} chars for {len(results)} sections = {max_chars} chars/section"
    )
    blocks = [
        f'[Section {i}: "{result.heading}"]\n{truncate_passage(result.text, max_chars)}'
        for i, result in enumerate(results, start=1)
    ]
    return "\n\n".join(blocks)


def build_sourced_context(
    results: Sequence[SourcedResult],
    available_chars: int = MAX_TOTAL_TOKENS * CHARS_PER_TOKEN,
    overhead: int = 100,
    minimum: int = 400,
) -> str:
    """
    Context block for multi-page results, citing each passage's domain.

    Format:
        [Source: example.com]
        ## Widgets
        Our widget ships in blue

        ---

        [Source: other.org]
        ...
    """
    if not results:
        return ""

    max_chars = section_budget(available_chars, len(results), overhead, minimum)
    logger.debug(
        f"Context budget: {available_chars} chars for {len(results)} sections = {max_chars} chars/section"
    )
    blocks = []
    for result in results:
        heading = f"## {result.heading}\n" if result.heading else ""
        blocks.append(
            f"[Source: {result.domain}]\n{heading}{truncate_passage(result.content, max_chars)}"
        )
    return "\n\n---\n\n".join(blocks)


def unique_sources(results: Iterable[SourcedResult]) -> List[str]:
    """Source URLs of results, first occurrence order"""
    sources: List[str] = []
    for result in results:
        if result.source_url not in sources:
            sources.append(result.source_url)
    return sources
