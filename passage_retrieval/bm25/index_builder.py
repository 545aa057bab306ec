"""
BM25 inverted index - term postings plus corpus length statistics.

Structure:
    postings:        term -> [Posting(ref, term_frequency, section_length), ...]
    section_lengths: ref -> token count
    average_length:  sum(section_lengths) / len(section_lengths)

The average is kept current with a running sum and count, so every
insertion costs O(section length) instead of a rescan of all sections.

A "ref" is whatever hashable key the owning retriever uses for a
section (a section id string, or a (document_id, ordinal) key).
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Posting:
    """One section's entry in a term's postings list"""
    ref: Hashable
    term_frequency: int
    section_length: int


class InvertedIndex:
    """
    Term → postings index with BM25 length statistics.

    Not deduplicating: indexing the same ref twice adds a second set of
    postings. Callers own id uniqueness.
    """

    def __init__(self):
        self.postings: Dict[str, List[Posting]] = {}
        self.section_lengths: Dict[Hashable, int] = {}
        self.average_length: float = 0.0
        self._total_length = 0

    @property
    def total_sections(self) -> int:
        """N in the IDF formula"""
        return len(self.section_lengths)

    @property
    def unique_term_count(self) -> int:
        return len(self.postings)

    def add(self, ref: Hashable, tokens: Iterable[str]) -> int:
        """
        Index one section's token stream.

        Args:
            ref: Section reference stored in every posting
            tokens: Section tokens (already tokenized, heading amplification applied)

        Returns:
            Section length in tokens
        """
        term_frequencies = Counter(tokens)
        length = sum(term_frequencies.values())

        for term, tf in term_frequencies.items():
            self.postings.setdefault(term, []).append(Posting(ref, tf, length))

        previous = self.section_lengths.get(ref)
        if previous is not None:
            self._total_length -= previous
        self.section_lengths[ref] = length
        self._total_length += length
        self.average_length = self._total_length / len(self.section_lengths)

        logger.debug(
            f"Indexed {ref}: {length} tokens, {len(term_frequencies)} distinct terms "
            f"(corpus: {self.total_sections} sections, avg length {self.average_length:.2f})"
        )
        return length

    def postings_for(self, term: str) -> List[Posting]:
        return self.postings.get(term, [])

    def document_frequency(self, term: str) -> int:
        """Number of sections containing term"""
        return len(self.postings.get(term, ()))

    def contains(self, ref: Hashable) -> bool:
        return ref in self.section_lengths

    def clear(self):
        self.postings.clear()
        self.section_lengths.clear()
        self.average_length = 0.0
        self._total_length = 0
