"""
Data model for passage retrieval.

Input records (supplied by the content-extraction layer):
- Section: one retrievable unit of a single page
- SourceSection / Document: sections of many pages, with provenance

Output records (consumed by prompt/answer construction):
- SectionResult: ranked single-corpus hit
- SourcedResult: ranked cross-corpus hit with citation metadata
- SearchResponse: results plus typed warnings about the index/query
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, NamedTuple, Optional


@dataclass(frozen=True)
class Section:
    """Section of one logical document (single-corpus retrieval)"""
    id: str
    text: str = ""
    heading: str = ""
    position: int = 0  # Zero-based ordinal within the parent document


@dataclass(frozen=True)
class SourceSection:
    """Section of one page in a multi-document corpus"""
    heading: str = ""
    content: str = ""


@dataclass
class Document:
    """A page and its sections, as indexed by CorpusRetriever"""
    id: str
    source_url: str
    title: str
    sections: List[SourceSection] = field(default_factory=list)


class SectionKey(NamedTuple):
    """Composite ref of a cross-corpus section: (document id, section ordinal)"""
    document_id: str
    ordinal: int

    def __str__(self) -> str:
        return f"{self.document_id}::{self.ordinal}"


@dataclass
class SectionResult:
    """Ranked section from SectionRetriever"""
    section: Section
    score: float
    heading_similarity: float = 0.0
    position: int = 0

    @property
    def text(self) -> str:
        return self.section.text

    @property
    def heading(self) -> str:
        return self.section.heading


@dataclass
class SourcedResult:
    """Ranked section from CorpusRetriever with citation provenance"""
    content: str
    heading: str
    score: float
    source_url: str
    document_id: str
    domain: str
    title: str
    section_ordinal: int = 0


class WarningKind(Enum):
    """Why a search returned fewer results than asked for"""
    EMPTY_INDEX = "empty_index"
    EMPTY_QUERY = "empty_query"
    NO_MATCHES = "no_matches"
    UNRESOLVED_POSTING = "unresolved_posting"


@dataclass
class IndexWarning:
    """Non-fatal condition met while answering a query"""
    kind: WarningKind
    message: str
    ref: Optional[Hashable] = None


@dataclass
class SearchResponse:
    """Ranked results plus the warnings raised while producing them"""
    results: List[Any] = field(default_factory=list)
    warnings: List[IndexWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """False when the index held postings that no longer resolve"""
        return not any(w.kind is WarningKind.UNRESOLVED_POSTING for w in self.warnings)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)


@dataclass
class IndexStats:
    """Diagnostic snapshot of a retriever's index"""
    document_count: int = 0
    section_count: int = 0
    unique_term_count: int = 0
    average_length: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DuplicateIdError(ValueError):
    """Section or document id is already indexed"""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(
            f"Duplicate {kind} id '{item_id}': already indexed. "
            f"Call clear() and re-add to replace indexed content."
        )
