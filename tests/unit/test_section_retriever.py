"""
Unit tests for SectionRetriever (single-page retrieval with boosting).
"""

import pytest
from passage_retrieval.bm25.index_builder import Posting
from passage_retrieval.bm25.tokenizer import StopWordPolicy
from passage_retrieval.config import RetrieverConfig
from passage_retrieval.models import DuplicateIdError, Section, SectionResult, WarningKind
from passage_retrieval.section_retriever import SectionRetriever


class TestRanking:
    """Heading, position and content signals"""

    def test_heading_match_ranks_first(self, pricing_sections):
        """'Pricing' heading beats a body-only mention of pricing"""
        results = SectionRetriever(pricing_sections).search("pricing")
        assert [r.section.id for r in results] == ["pricing", "features"]

    def test_heading_match_beats_earlier_position(self):
        """Heading boost outweighs a one-slot position advantage"""
        sections = [
            Section(id="features", heading="Features", text="Pricing details are on the plans page", position=0),
            Section(id="pricing", heading="Pricing", text="Our plans cost $10/month", position=1),
        ]
        results = SectionRetriever(sections).search("pricing")
        assert results[0].section.id == "pricing"

    def test_position_decay(self):
        """Identical sections: position 0 scores strictly higher than 19"""
        sections = [
            Section(id="early", heading="Setup", text="install the widget", position=0),
            Section(id="late", heading="Setup", text="install the widget", position=19),
        ]
        results = SectionRetriever(sections).search("widget")
        scores = {r.section.id: r.score for r in results}
        assert scores["early"] > scores["late"]
        assert scores["early"] / scores["late"] == pytest.approx(2.0 / 1.05)

    def test_headingless_section_not_penalized(self, help_page_sections):
        """A section without heading still ranks with its content score"""
        results = SectionRetriever(help_page_sections).search("contact support", top_k=5)
        assert results[0].section.id == "misc"
        assert results[0].heading_similarity == 0.0

    def test_acronym_query(self, help_page_sections):
        """'IT' survives tokenization and finds the IT section"""
        results = SectionRetriever(help_page_sections).search("IT")
        assert results[0].section.id == "it"

    def test_ties_keep_insertion_order(self):
        """Equal scores come back in insertion order"""
        sections = [
            Section(id="first", text="widget", position=0),
            Section(id="second", text="widget", position=0),
        ]
        results = SectionRetriever(sections).search("widget")
        assert [r.section.id for r in results] == ["first", "second"]
        assert results[0].score == results[1].score

    def test_result_fields(self, pricing_sections):
        """Results expose section text, heading, score and position"""
        result = SectionRetriever(pricing_sections).search("pricing")[0]
        assert isinstance(result, SectionResult)
        assert result.text == "Our plans cost $10/month"
        assert result.heading == "Pricing"
        assert result.heading_similarity == 1.0
        assert result.position == 0
        assert result.score > 0

    def test_stemming_config(self):
        """With stemming on, 'plan' finds 'plans'"""
        sections = [Section(id="a", text="Compare our plans")]
        assert SectionRetriever(sections).search("plan") == []

        stemmed = SectionRetriever(sections, config=RetrieverConfig.for_sections(stemming=True))
        assert [r.section.id for r in stemmed.search("plan")] == ["a"]


class TestResultLimits:
    """top_k and ordering guarantees"""

    @pytest.fixture
    def widget_sections(self):
        return [
            Section(id=f"s{i}", text="widget " * (i + 1) + "filler", position=i)
            for i in range(6)
        ]

    def test_at_most_top_k(self, widget_sections):
        """Never more than top_k results"""
        retriever = SectionRetriever(widget_sections)
        assert len(retriever.search("widget", top_k=3)) == 3
        assert len(retriever.search("widget", top_k=10)) == 6

    def test_sorted_descending(self, widget_sections):
        """Scores are non-increasing"""
        results = SectionRetriever(widget_sections).search("widget", top_k=6)
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_default_top_k(self, widget_sections):
        """Single-page default returns 3 results"""
        assert len(SectionRetriever(widget_sections).search("widget")) == 3

    def test_non_positive_top_k(self, widget_sections):
        """top_k <= 0 returns nothing"""
        retriever = SectionRetriever(widget_sections)
        assert retriever.search("widget", top_k=0) == []
        assert retriever.search("widget", top_k=-1) == []


class TestEmptyCases:
    """Empty is not an error"""

    def test_empty_corpus(self):
        """Search before indexing returns [] with a warning"""
        retriever = SectionRetriever()
        assert retriever.search("anything") == []

        response = retriever.search_with_diagnostics("anything")
        assert [w.kind for w in response.warnings] == [WarningKind.EMPTY_INDEX]

    def test_empty_query(self, pricing_sections):
        """Empty query returns []"""
        retriever = SectionRetriever(pricing_sections)
        assert retriever.search("") == []
        assert retriever.search_with_diagnostics("").warnings[0].kind is WarningKind.EMPTY_QUERY

    def test_stopword_only_query_strict(self, pricing_sections):
        """Stopword-only query on a strict index returns []"""
        config = RetrieverConfig.for_sections(stop_word_policy=StopWordPolicy.STRICT)
        assert SectionRetriever(pricing_sections, config=config).search("the and of") == []

    def test_stopword_only_query_lenient(self, pricing_sections):
        """Lenient policy drops stopwords longer than 2 characters"""
        assert SectionRetriever(pricing_sections).search("the and") == []

    def test_no_matching_terms(self, pricing_sections):
        """Unknown terms return [] with NO_MATCHES"""
        response = SectionRetriever(pricing_sections).search_with_diagnostics("kubernetes")
        assert response.results == []
        assert response.warnings[0].kind is WarningKind.NO_MATCHES


class TestDefensiveResolution:
    """Broken postings are skipped, not fatal"""

    def test_corrupted_posting_skipped(self, pricing_sections):
        """A posting for a missing section is dropped; the rest stays ranked"""
        retriever = SectionRetriever(pricing_sections)
        retriever._index.postings["month"].append(Posting("ghost", 5, 3))

        response = retriever.search_with_diagnostics("pricing month")

        assert [r.section.id for r in response.results] == ["pricing", "features"]
        scores = [r.score for r in response.results]
        assert scores == sorted(scores, reverse=True)
        assert not response.ok
        unresolved = [w for w in response.warnings if w.kind is WarningKind.UNRESOLVED_POSTING]
        assert [w.ref for w in unresolved] == ["ghost"]

    def test_search_does_not_raise(self, pricing_sections):
        """Plain search() returns the valid results"""
        retriever = SectionRetriever(pricing_sections)
        retriever._index.postings["cost"].insert(0, Posting("ghost", 1, 1))
        assert [r.section.id for r in retriever.search("cost")] == ["pricing"]


class TestIngestion:
    """Adding, replacing and clearing sections"""

    def test_average_length_after_each_add(self):
        """Stats average equals sum(lengths) / N after every addition"""
        retriever = SectionRetriever()
        lengths = []
        for i, text in enumerate(["alpha beta", "gamma delta epsilon zeta", "eta"]):
            retriever.add_section(Section(id=f"s{i}", text=text, position=i))
            lengths.append(len(text.split()))
            assert retriever.get_stats().average_length == pytest.approx(sum(lengths) / len(lengths))

    def test_heading_counts_three_times(self, pricing_sections):
        """Section length includes the heading tokens 3x"""
        retriever = SectionRetriever(pricing_sections[:1])
        assert retriever.get_stats().average_length == pytest.approx(8.0)

    def test_mapping_sections(self):
        """Mappings are accepted; missing positions follow insertion order"""
        retriever = SectionRetriever()
        retriever.add_sections([{"id": "a", "text": "widget"}, {"id": "b", "heading": "Widget"}])
        retriever.add_section({"id": "c", "text": "gadget"})

        assert [s.position for s in retriever.sections] == [0, 1, 2]
        assert retriever.sections[1].text == ""

    def test_mapping_without_id(self):
        """A mapping needs an id"""
        with pytest.raises(ValueError):
            SectionRetriever().add_section({"text": "widget"})

    def test_duplicate_id_rejected(self, pricing_sections):
        """Re-adding an indexed id raises"""
        retriever = SectionRetriever(pricing_sections)
        with pytest.raises(DuplicateIdError) as exc_info:
            retriever.add_section(Section(id="pricing", text="again"))
        assert exc_info.value.item_id == "pricing"

    def test_duplicate_in_batch_leaves_index_unchanged(self, pricing_sections):
        """A batch with a repeated id is rejected as a whole"""
        retriever = SectionRetriever(pricing_sections)
        with pytest.raises(DuplicateIdError):
            retriever.add_sections([Section(id="new", text="a"), Section(id="new", text="b")])
        assert len(retriever) == 2
        assert retriever.get_stats().section_count == 2

    def test_replace_sections(self, pricing_sections):
        """replace_sections drops the old content"""
        retriever = SectionRetriever(pricing_sections)
        retriever.replace_sections([Section(id="x", text="gadget")])

        assert len(retriever) == 1
        assert retriever.search("pricing") == []
        assert [r.section.id for r in retriever.search("gadget")] == ["x"]

    def test_clear(self, pricing_sections):
        """clear() returns to the empty state"""
        retriever = SectionRetriever(pricing_sections)
        retriever.clear()

        assert retriever.is_empty
        assert retriever.search("pricing") == []
        assert retriever.get_stats().as_dict() == {
            "document_count": 0,
            "section_count": 0,
            "unique_term_count": 0,
            "average_length": 0.0,
        }

    def test_stats(self, pricing_sections):
        """Stats report one document, its sections and vocabulary"""
        stats = SectionRetriever(pricing_sections).get_stats()
        assert stats.document_count == 1
        assert stats.section_count == 2
        assert stats.unique_term_count == 10
        assert stats.average_length == pytest.approx(8.0)

    def test_instances_independent(self, pricing_sections):
        """Two retrievers share no index state"""
        a = SectionRetriever(pricing_sections)
        b = SectionRetriever()
        assert b.search("pricing") == []
        assert len(a.search("pricing")) == 2
