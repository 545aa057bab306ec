"""
Single-page BM25 retriever with heading- and position-aware boosting.

Indexes the sections of one logical document (e.g. one web page). Heading
tokens are repeated in each section's token stream (3x by default) so
heading matches earn a higher raw term frequency; at query time the raw
BM25 score is further scaled by position, heading similarity and heading
specificity (see boosting.py).

Usage:
    retriever = SectionRetriever([
        Section(id="s0", heading="Pricing", text="Our plans cost $10/month", position=0),
        Section(id="s1", heading="Features", text="Pricing details are on the plans page", position=1),
    ])
    for result in retriever.search("pricing", top_k=3):
        print(result.heading, result.score)

One instance per page/session. Instances share no state; a single
instance must not be searched while it is being written to.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .bm25.index_builder import InvertedIndex
from .bm25.scorer import BM25Scorer
from .bm25.tokenizer import tokenize
from .boosting import amplify_heading, boosted_score, heading_similarity
from .config import RetrieverConfig
from .models import (
    DuplicateIdError,
    IndexStats,
    IndexWarning,
    SearchResponse,
    Section,
    SectionResult,
    WarningKind,
)

logger = logging.getLogger(__name__)

SectionLike = Union[Section, Mapping]


class SectionRetriever:
    """BM25 retriever over the sections of a single document"""

    def __init__(
        self,
        sections: Optional[Iterable[SectionLike]] = None,
        config: Optional[RetrieverConfig] = None,
    ):
        self.config = config or RetrieverConfig.for_sections()
        self._scorer = BM25Scorer(k1=self.config.k1, b=self.config.b)
        self._index = InvertedIndex()
        self._sections: Dict[str, Section] = {}
        self._heading_tokens: Dict[str, List[str]] = {}

        if sections:
            self.add_sections(sections)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_section(self, section: SectionLike):
        """
        Index one section.

        Raises:
            DuplicateIdError: A section with the same id is already indexed
        """
        self.add_sections([section])

    def add_sections(self, sections: Iterable[SectionLike]):
        """
        Index a batch of sections.

        The whole batch is checked for duplicate ids first, so a rejected
        batch leaves the index unchanged.

        Mappings are accepted with keys id, text, heading, position; a
        missing position defaults to the section's insertion ordinal.

        Raises:
            DuplicateIdError: An id repeats within the batch or is already indexed
        """
        batch = self._coerce_batch(sections)
        for section in batch:
            if section.id in self._sections:
                raise DuplicateIdError("section", section.id)

        for section in batch:
            self._index_section(section)

        logger.debug(
            f"Indexed {len(batch)} sections "
            f"(total: {len(self._sections)}, {self._index.unique_term_count} unique terms)"
        )

    def replace_sections(self, sections: Iterable[SectionLike]):
        """Clear the index and rebuild it from sections"""
        batch = self._coerce_batch(sections, start=0)
        self.clear()
        for section in batch:
            self._index_section(section)
        logger.debug(f"Rebuilt index with {len(batch)} sections")

    def clear(self):
        """Reset to the empty state"""
        self._index.clear()
        self._sections.clear()
        self._heading_tokens.clear()

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def search(self, query: str, top_k: Optional[int] = None) -> List[SectionResult]:
        """
        Search for the sections most relevant to query.

        Args:
            query: Free-text query
            top_k: Maximum number of results (default: config.default_top_k)

        Returns:
            Up to top_k results sorted by descending boosted score.
            Empty list for an empty index, an empty/stop-word-only query,
            or no matching terms.
        """
        return self.search_with_diagnostics(query, top_k).results

    def search_with_diagnostics(self, query: str, top_k: Optional[int] = None) -> SearchResponse:
        """Like search(), but also returns the warnings raised on the way"""
        response = SearchResponse()
        if top_k is None:
            top_k = self.config.default_top_k
        if top_k <= 0:
            return response

        if not self._sections:
            logger.warning("Search on empty index: no sections available")
            response.warnings.append(
                IndexWarning(WarningKind.EMPTY_INDEX, "No sections indexed")
            )
            return response

        query_terms = self._tokenize(query)
        if not query_terms:
            logger.debug(f"Query has no searchable terms: {query!r}")
            response.warnings.append(
                IndexWarning(WarningKind.EMPTY_QUERY, f"Query has no searchable terms: {query!r}")
            )
            return response

        raw_scores = self._scorer.score_candidates(query_terms, self._index)
        if not raw_scores:
            logger.debug(f"No sections match query terms {query_terms}")
            response.warnings.append(
                IndexWarning(WarningKind.NO_MATCHES, f"No sections match {query_terms}")
            )
            return response

        candidates = []
        for ref, raw_score in raw_scores.items():
            section = self._sections.get(ref)
            if section is None:
                logger.error(f"Posting references unknown section: {ref}")
                response.warnings.append(
                    IndexWarning(
                        WarningKind.UNRESOLVED_POSTING,
                        f"Section not found: {ref}",
                        ref=ref,
                    )
                )
                continue

            similarity = heading_similarity(
                query_terms, self._heading_tokens.get(ref, []), section.heading
            )
            score = boosted_score(
                raw_score,
                section.position,
                similarity,
                section.heading,
                window=self.config.position_window,
            )
            candidates.append(
                SectionResult(
                    section=section,
                    score=score,
                    heading_similarity=similarity,
                    position=section.position,
                )
            )

        # Stable sort: ties keep insertion order
        order = {section_id: i for i, section_id in enumerate(self._sections)}
        candidates.sort(key=lambda r: order[r.section.id])
        candidates.sort(key=lambda r: r.score, reverse=True)
        response.results = candidates[:top_k]

        for rank, result in enumerate(response.results, start=1):
            logger.debug(
                f"  {rank}. \"{result.heading}\" (score: {result.score:.2f}, "
                f"heading sim: {result.heading_similarity * 100:.0f}%, pos: #{result.position})"
            )
        return response

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_stats(self) -> IndexStats:
        return IndexStats(
            document_count=1 if self._sections else 0,
            section_count=len(self._sections),
            unique_term_count=self._index.unique_term_count,
            average_length=self._index.average_length,
        )

    @property
    def sections(self) -> Tuple[Section, ...]:
        """Indexed sections in insertion order"""
        return tuple(self._sections.values())

    @property
    def is_empty(self) -> bool:
        return not self._sections

    def __len__(self) -> int:
        return len(self._sections)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _tokenize(self, text: Optional[str]) -> List[str]:
        return tokenize(text, self.config.stop_word_policy, self.config.stemming)

    def _index_section(self, section: Section):
        heading_tokens = self._tokenize(section.heading)
        body_tokens = self._tokenize(section.text)
        tokens = amplify_heading(heading_tokens, body_tokens, self.config.heading_repeat)
        if not tokens:
            logger.warning(f"Section {section.id} has no tokens (empty heading and text)")

        self._sections[section.id] = section
        self._heading_tokens[section.id] = heading_tokens
        self._index.add(section.id, tokens)

    def _coerce_batch(self, sections: Iterable[SectionLike], start: Optional[int] = None) -> List[Section]:
        start = len(self._sections) if start is None else start
        batch = []
        seen = set()
        for offset, item in enumerate(sections):
            section = _to_section(item, default_position=start + offset)
            if section.id in seen:
                raise DuplicateIdError("section", section.id)
            seen.add(section.id)
            batch.append(section)
        return batch


def _to_section(item: SectionLike, default_position: int) -> Section:
    if isinstance(item, Section):
        return item
    if isinstance(item, Mapping):
        if item.get("id") is None:
            raise ValueError(f"Section mapping requires an 'id': {dict(item)}")
        position = item.get("position")
        return Section(
            id=str(item["id"]),
            text=item.get("text") or "",
            heading=item.get("heading") or "",
            position=default_position if position is None else int(position),
        )
    raise TypeError(f"Expected Section or mapping, got {type(item).__name__}")
