"""
Okapi BM25 scorer over an InvertedIndex.

BM25 (Best Match 25) is a probabilistic ranking function used for information retrieval.

Formula:
    idf(term)   = ln((N - df + 0.5) / (df + 0.5) + 1)
    score(term) = idf × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × len/avglen))
    score       = Σ score(term) over query terms present in the section

Where:
    N      = number of indexed sections
    df     = number of sections containing the term
    tf     = term frequency in the section
    k1     = term frequency saturation parameter (default: 1.5)
    b      = length normalization parameter (default: 0.75)
    len    = section length (tokens)
    avglen = current corpus average section length

The "+ 1" inside the logarithm keeps idf positive even for terms that
appear in more than half of the sections, so every score is ≥ 0.
"""

import math
from typing import Dict, Hashable, List, Mapping

from .index_builder import InvertedIndex


class BM25Scorer:
    """
    BM25 scoring with global IDF taken from the owning index.
    """

    def __init__(self, k1: float = 1.5, b: float = 0.75):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to repeated terms
                Range: 0.0 - 3.0 (typical 1.2 - 2.0)

            b: Length normalization parameter
                Higher = more penalty for long sections
                Range: 0.0 - 1.0
        """
        self.k1 = k1
        self.b = b

    def idf(self, document_frequency: int, total_sections: int) -> float:
        """Inverse document frequency of a term found in document_frequency sections"""
        return math.log(
            (total_sections - document_frequency + 0.5) / (document_frequency + 0.5) + 1
        )

    def term_score(
        self,
        tf: int,
        idf: float,
        section_length: int,
        average_length: float
    ) -> float:
        """Contribution of one query term to one section's score"""
        if tf <= 0 or average_length <= 0:
            return 0.0
        numerator = tf * (self.k1 + 1)
        denominator = tf + self.k1 * (
            1 - self.b + self.b * (section_length / average_length)
        )
        return idf * (numerator / denominator)

    def score(
        self,
        query_terms: List[str],
        term_frequencies: Mapping[str, int],
        section_length: int,
        index: InvertedIndex
    ) -> float:
        """
        Compute BM25 score of one section for the given query terms.

        Args:
            query_terms: Tokenized query
            term_frequencies: Term frequency map of the section {term: count}
            section_length: Section length in tokens
            index: Index supplying N, df and the average length

        Returns:
            BM25 score (≥ 0, higher = more relevant)

        Example:
            >>> index = InvertedIndex()
            >>> index.add("s1", ["pricing", "plans"])
            2
            >>> BM25Scorer().score(["pricing"], {"pricing": 1, "plans": 1}, 2, index) > 0
            True
        """
        score = 0.0
        for term in query_terms:
            df = index.document_frequency(term)
            if df == 0:
                continue
            score += self.term_score(
                term_frequencies.get(term, 0),
                self.idf(df, index.total_sections),
                section_length,
                index.average_length,
            )
        return score

    def score_candidates(
        self,
        query_terms: List[str],
        index: InvertedIndex
    ) -> Dict[Hashable, float]:
        """
        Score every section sharing at least one term with the query.

        Walks the postings of each query term once per occurrence in the
        query, so a term repeated in the query weighs repeatedly.

        Returns:
            {ref: raw BM25 score}, refs in first-seen order
        """
        scores: Dict[Hashable, float] = {}
        for term in query_terms:
            postings = index.postings_for(term)
            if not postings:
                continue
            idf = self.idf(len(postings), index.total_sections)
            for posting in postings:
                contribution = self.term_score(
                    posting.term_frequency,
                    idf,
                    posting.section_length,
                    index.average_length,
                )
                scores[posting.ref] = scores.get(posting.ref, 0.0) + contribution
        return scores
