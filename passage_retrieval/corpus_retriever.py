"""
Multi-document BM25 retriever with citation provenance.

Indexes sections from many pages into one shared postings table. Every
section is keyed by SectionKey(document_id, ordinal), so results can be
traced back to the page they came from (URL, domain, title).

Only raw BM25 is used here. Heading conventions and section order are
not comparable across independently authored pages, so the single-page
heading/position boosts do not apply.

Usage:
    corpus = CorpusRetriever()
    corpus.add_document("d1", "https://www.example.com/a", "Example", [
        SourceSection(heading="Widgets", content="Our widget ships in blue"),
    ])
    corpus.search("widget")[0].domain   # "example.com"
"""

import logging
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from .bm25.index_builder import InvertedIndex
from .bm25.scorer import BM25Scorer
from .bm25.tokenizer import tokenize
from .config import RetrieverConfig
from .models import (
    Document,
    DuplicateIdError,
    IndexStats,
    IndexWarning,
    SearchResponse,
    SectionKey,
    SourcedResult,
    SourceSection,
    WarningKind,
)

logger = logging.getLogger(__name__)

SourceSectionLike = Union[SourceSection, Mapping]


def extract_domain(url: str) -> str:
    """
    Hostname of url without a leading "www.", for short citations.

    Examples:
        >>> extract_domain("https://www.example.com/a")
        'example.com'
        >>> extract_domain("not a url")
        'not a url'
    """
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    if not hostname:
        # Keep full URL if parsing fails
        return url
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname


class CorpusRetriever:
    """BM25 retriever across the sections of many documents"""

    def __init__(self, config: Optional[RetrieverConfig] = None):
        self.config = config or RetrieverConfig.for_corpus()
        self._scorer = BM25Scorer(k1=self.config.k1, b=self.config.b)
        self._index = InvertedIndex()
        self._documents: Dict[str, Document] = {}
        self._pages_seen = 0

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_document(
        self,
        document_id: str,
        source_url: str,
        title: str,
        sections: Iterable[SourceSectionLike],
    ):
        """
        Add a document to the index.

        Args:
            document_id: Unique document identifier
            source_url: Source URL for citations
            title: Page title
            sections: SourceSection records or mappings with heading/content

        Raises:
            DuplicateIdError: document_id is already indexed
        """
        if document_id in self._documents:
            raise DuplicateIdError("document", document_id)

        document = Document(
            id=document_id,
            source_url=source_url,
            title=title or "",
            sections=[_to_source_section(s) for s in sections],
        )
        self._documents[document_id] = document

        for ordinal, section in enumerate(document.sections):
            tokens = self._tokenize(f"{section.heading or ''} {section.content or ''}")
            self._index.add(SectionKey(document_id, ordinal), tokens)

        logger.debug(
            f"Indexed {document_id}: {len(document.sections)} sections, "
            f"{self._index.unique_term_count} unique terms"
        )

    def add_pages(self, pages: Iterable[Mapping]) -> int:
        """
        Index extracted pages, one document per page.

        Each page is a mapping with url, title and sections. Document ids
        are assigned as page_<n>. Pages without sections are skipped.

        Returns:
            Number of pages indexed
        """
        indexed = 0
        for page in pages:
            page_number = self._pages_seen
            self._pages_seen += 1
            sections = page.get("sections")
            if not sections:
                logger.warning(f"Page missing extracted sections: {page.get('url')}")
                continue
            self.add_document(
                f"page_{page_number}",
                page.get("url", ""),
                page.get("title", ""),
                sections,
            )
            indexed += 1

        stats = self.get_stats()
        logger.info(
            f"Indexed {indexed} pages: {stats.section_count} sections, "
            f"{stats.unique_term_count} unique terms"
        )
        return indexed

    def clear(self):
        """Reset to the empty state"""
        self._documents.clear()
        self._index.clear()
        self._pages_seen = 0
        logger.debug("Index cleared")

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def search(self, query: str, top_k: Optional[int] = None) -> List[SourcedResult]:
        """
        Search across all documents.

        Args:
            query: Free-text query
            top_k: Maximum number of results (default: config.default_top_k)

        Returns:
            Up to top_k results sorted by descending BM25 score, each with
            source_url, document_id, domain and title for citation
        """
        return self.search_with_diagnostics(query, top_k).results

    def search_with_diagnostics(self, query: str, top_k: Optional[int] = None) -> SearchResponse:
        """Like search(), but also returns the warnings raised on the way"""
        response = SearchResponse()
        if top_k is None:
            top_k = self.config.default_top_k
        if top_k <= 0:
            return response

        if self._index.total_sections == 0:
            logger.warning("Search on empty index: no documents indexed")
            response.warnings.append(
                IndexWarning(WarningKind.EMPTY_INDEX, "No documents indexed")
            )
            return response

        query_terms = self._tokenize(query)
        if not query_terms:
            logger.debug(f"Query has no searchable terms: {query!r}")
            response.warnings.append(
                IndexWarning(WarningKind.EMPTY_QUERY, f"Query has no searchable terms: {query!r}")
            )
            return response

        scores = self._scorer.score_candidates(query_terms, self._index)
        if not scores:
            logger.debug(f"No sections match query terms {query_terms}")
            response.warnings.append(
                IndexWarning(WarningKind.NO_MATCHES, f"No sections match {query_terms}")
            )
            return response

        # Ties keep insertion order (document, then section ordinal)
        doc_order = {doc_id: i for i, doc_id in enumerate(self._documents)}
        ranked = sorted(scores.items(), key=lambda item: _insertion_order(item[0], doc_order))
        ranked.sort(key=lambda item: item[1], reverse=True)

        for ref, score in ranked:
            if len(response.results) >= top_k:
                break
            resolved = self._resolve(ref)
            if resolved is None:
                logger.error(f"Posting references unknown section: {ref}")
                response.warnings.append(
                    IndexWarning(
                        WarningKind.UNRESOLVED_POSTING,
                        f"Section not found: {ref}",
                        ref=ref,
                    )
                )
                continue

            document, section = resolved
            response.results.append(
                SourcedResult(
                    content=section.content or "",
                    heading=section.heading or "",
                    score=score,
                    source_url=document.source_url,
                    document_id=document.id,
                    domain=extract_domain(document.source_url),
                    title=document.title,
                    section_ordinal=ref.ordinal,
                )
            )

        for rank, result in enumerate(response.results, start=1):
            logger.debug(
                f"  {rank}. {result.domain} ({result.heading or 'No heading'}) - Score: {result.score:.4f}"
            )
        return response

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_stats(self) -> IndexStats:
        return IndexStats(
            document_count=len(self._documents),
            section_count=self._index.total_sections,
            unique_term_count=self._index.unique_term_count,
            average_length=self._index.average_length,
        )

    def get_document(self, document_id: str) -> Optional[Document]:
        return self._documents.get(document_id)

    @property
    def documents(self) -> Tuple[Document, ...]:
        """Indexed documents in insertion order"""
        return tuple(self._documents.values())

    @property
    def is_empty(self) -> bool:
        return self._index.total_sections == 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _tokenize(self, text: Optional[str]) -> List[str]:
        return tokenize(text, self.config.stop_word_policy, self.config.stemming)

    def _resolve(self, ref: Hashable) -> Optional[Tuple[Document, SourceSection]]:
        if not isinstance(ref, SectionKey):
            return None
        document = self._documents.get(ref.document_id)
        if document is None:
            return None
        if not 0 <= ref.ordinal < len(document.sections):
            return None
        return document, document.sections[ref.ordinal]


def _to_source_section(item: SourceSectionLike) -> SourceSection:
    if isinstance(item, SourceSection):
        if item.heading is None or item.content is None:
            return SourceSection(heading=item.heading or "", content=item.content or "")
        return item
    if isinstance(item, Mapping):
        return SourceSection(
            heading=item.get("heading") or "",
            content=item.get("content") or "",
        )
    raise TypeError(f"Expected SourceSection or mapping, got {type(item).__name__}")


def _insertion_order(ref: Hashable, doc_order: Mapping[str, int]) -> Tuple[int, int]:
    if isinstance(ref, SectionKey) and ref.document_id in doc_order:
        return doc_order[ref.document_id], ref.ordinal
    return len(doc_order), 0
