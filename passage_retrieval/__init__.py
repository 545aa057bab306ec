"""
Lexical passage retrieval for retrieval-augmented answering.

Ranks sections of text against a free-text query with BM25 and returns
the few passages most likely to contain the answer.

Two retrievers share one scoring core:
- SectionRetriever: sections of one page, with heading/position boosting
- CorpusRetriever: sections of many pages, with citation provenance

Helpers around them:
- refine_query: fold recent conversation into a vague follow-up question
- build_section_context / build_sourced_context: fit results into a prompt budget
"""

from .bm25.tokenizer import StopWordPolicy, tokenize
from .config import ConfigurationError, RetrieverConfig, load_config
from .context import (
    available_context_chars,
    build_section_context,
    build_sourced_context,
    truncate_passage,
    unique_sources,
)
from .corpus_retriever import CorpusRetriever, extract_domain
from .models import (
    Document,
    DuplicateIdError,
    IndexStats,
    IndexWarning,
    SearchResponse,
    Section,
    SectionKey,
    SectionResult,
    SourcedResult,
    SourceSection,
    WarningKind,
)
from .query import refine_query
from .section_retriever import SectionRetriever

__version__ = "0.1.0"

__all__ = [
    "StopWordPolicy",
    "tokenize",
    "ConfigurationError",
    "RetrieverConfig",
    "load_config",
    "available_context_chars",
    "build_section_context",
    "build_sourced_context",
    "truncate_passage",
    "unique_sources",
    "CorpusRetriever",
    "extract_domain",
    "Document",
    "DuplicateIdError",
    "IndexStats",
    "IndexWarning",
    "SearchResponse",
    "Section",
    "SectionKey",
    "SectionResult",
    "SourcedResult",
    "SourceSection",
    "WarningKind",
    "refine_query",
    "SectionRetriever",
]
