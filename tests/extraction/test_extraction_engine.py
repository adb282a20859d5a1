"""
Unit tests for the ExtractionEngine.

Tests cover:
- Keyword matching and the confidence curve
- Strongest-document selection
- Excerpt selection and truncation
- Extraction of all component types, with and without evidence
- Backend phrasing, fallbacks and prompt construction
"""

from typing import Optional

import pytest

from flowscribe.config import ExtractionConfig
from flowscribe.errors import ExtractionBackendError
from flowscribe.extraction import ExtractionEngine
from flowscribe.extraction.catalog import COMPONENT_KEYWORDS
from flowscribe.models import (
    COMPONENT_TYPES,
    NO_DATA_DESCRIPTION,
    ArchitectureComponentType as T,
    Document,
)


class RecordingBackend:
    """Backend returning fixed details and recording prompts."""

    def __init__(self, details: Optional[dict] = None) -> None:
        self.details = details or {
            "title": "Session Store",
            "description": "Stores login sessions",
            "sourceExcerpt": "Sessions are kept in a Postgres database.",
        }
        self.prompts: list[str] = []

    async def extract(self, prompt: str) -> dict:
        self.prompts.append(prompt)
        return self.details


class FailingBackend:
    """Backend that always fails."""

    async def extract(self, prompt: str) -> dict:
        raise ExtractionBackendError("model unavailable")


@pytest.fixture
def engine() -> ExtractionEngine:
    return ExtractionEngine()


@pytest.mark.extraction
class TestKeywordCatalog:
    """Tests for keyword and template lookups."""

    def test_every_type_has_keywords_and_template(self, engine):
        """Test that lookups cover every component type."""
        for component_type in COMPONENT_TYPES:
            assert engine.get_component_keywords(component_type)
            assert "JSON" in engine.get_prompt_template(component_type)

    def test_keywords_returned_as_copy(self, engine):
        """Test that callers cannot mutate the catalog."""
        keywords = engine.get_component_keywords(T.DATABASE)
        keywords.append("spreadsheet")
        assert "spreadsheet" not in COMPONENT_KEYWORDS[T.DATABASE]

    def test_string_type_accepted(self, engine):
        """Test lookups by type value."""
        assert "database" in engine.get_component_keywords("DATABASE")

    def test_unknown_type_lookups(self, engine):
        """Test unknown types give empty lookups instead of raising."""
        assert engine.get_component_keywords("CACHE") == []
        assert engine.get_prompt_template("CACHE") == ""

    def test_keyword_sets_disjoint(self):
        """Test that no keyword counts for two component types."""
        seen: set[str] = set()
        for keywords in COMPONENT_KEYWORDS.values():
            assert seen.isdisjoint(keywords)
            seen.update(keywords)


@pytest.mark.extraction
class TestKeywordMatching:
    """Tests for whole-word keyword counting."""

    def test_counts_distinct_keywords(self, engine):
        """Test that each keyword counts once."""
        content = "SQL database. Another database and more SQL."
        assert engine.count_keyword_matches(T.DATABASE, content) == 2

    def test_case_insensitive(self, engine):
        """Test matching ignores case."""
        assert engine.count_keyword_matches(T.DATABASE, "DATABASE") == 1

    def test_whole_words_only(self, engine):
        """Test that keywords inside longer words do not match."""
        assert engine.count_keyword_matches(T.USER_ACTION, "Several users logged in") == 0
        assert engine.count_keyword_matches(T.DATABASE, "dbms persistence") == 0

    def test_phrase_keywords(self, engine):
        """Test multi-word keywords."""
        assert engine.count_keyword_matches(T.LOAD_BALANCER, "behind a Load Balancer") == 1

    def test_phrase_of_another_type_not_counted(self, engine):
        """Test a keyword inside another type's phrase is that type's evidence only."""
        content = "Requests are screened by a web application firewall."
        assert engine.count_keyword_matches(T.FIREWALL, content) == 0
        assert engine.count_keyword_matches(T.WAF, content) == 1
        assert engine.count_keyword_matches(T.API_ENDPOINT, "Traffic reaches the API gateway") == 0

    def test_standalone_keyword_still_counted(self, engine):
        """Test masking only removes the longer phrase."""
        content = "A network firewall sits in front of the web application firewall."
        assert engine.count_keyword_matches(T.FIREWALL, content) == 1

    def test_waf_only_document_leaves_firewall_empty(self, engine):
        """Test detection for a document that only describes a WAF."""
        documents = [Document(id="waf", content="All traffic passes a web application firewall.")]
        assert engine.detect_component_data(T.FIREWALL, documents).has_data is False
        assert engine.detect_component_data(T.WAF, documents).has_data is True


@pytest.mark.extraction
class TestConfidenceCurve:
    """Tests for confidence as a function of matches."""

    @pytest.mark.parametrize(
        "matches,expected",
        [(0, 0.0), (1, 0.4), (2, 0.7), (3, 0.8), (4, 0.9), (10, 0.9)],
    )
    def test_curve_values(self, engine, matches, expected):
        """Test the default curve."""
        assert engine.confidence_for_matches(matches) == pytest.approx(expected)

    def test_curve_non_decreasing(self, engine):
        """Test confidence never drops as matches grow."""
        values = [engine.confidence_for_matches(n) for n in range(15)]
        assert values == sorted(values)
        assert all(0.0 <= v <= 1.0 for v in values)

    def test_min_matches_threshold(self):
        """Test that a higher threshold suppresses weak evidence."""
        engine = ExtractionEngine(ExtractionConfig(min_keyword_matches=2))
        docs = [Document(id="d1", content="a database")]
        detection = engine.detect_component_data(T.DATABASE, docs)
        assert detection.has_data is False
        assert detection.confidence == 0.0


@pytest.mark.extraction
class TestDetectComponentData:
    """Tests for strongest-document detection."""

    def test_database_keywords_detected(self, engine, database_document):
        """Test that database vocabulary yields DATABASE evidence."""
        detection = engine.detect_component_data("DATABASE", [database_document])
        assert detection.has_data is True
        assert detection.relevant_document == database_document
        assert detection.match_count == 2
        assert detection.confidence == pytest.approx(0.7)

    def test_strongest_document_wins(self, engine):
        """Test that the document with most matches is chosen."""
        weak = Document(id="weak", content="a database")
        strong = Document(id="strong", content="database, sql and a query")
        detection = engine.detect_component_data(T.DATABASE, [weak, strong])
        assert detection.relevant_document.id == "strong"
        assert detection.match_count == 3

    def test_tie_goes_to_first(self, engine):
        """Test that equal evidence keeps the earliest document."""
        first = Document(id="first", content="database")
        second = Document(id="second", content="sql")
        detection = engine.detect_component_data(T.DATABASE, [first, second])
        assert detection.relevant_document.id == "first"

    def test_empty_corpus(self, engine):
        """Test no documents means no data."""
        for documents in ([], None):
            detection = engine.detect_component_data(T.DATABASE, documents)
            assert detection.has_data is False
            assert detection.confidence == 0.0
            assert detection.relevant_document is None

    def test_unknown_type_has_no_data(self, engine, database_document):
        """Test an unknown type string yields an empty detection."""
        detection = engine.detect_component_data("CACHE", [database_document])
        assert detection.has_data is False
        assert detection.confidence == 0.0
        assert detection.match_count == 0

    def test_malformed_documents_skipped(self, engine):
        """Test that unusable entries are ignored."""
        documents = [
            {"content": "database"},
            "not a document",
            None,
            {"id": "ok", "content": "sql database"},
        ]
        detection = engine.detect_component_data(T.DATABASE, documents)
        assert detection.has_data is True
        assert detection.relevant_document.id == "ok"


@pytest.mark.extraction
class TestExcerpts:
    """Tests for excerpt selection."""

    def test_first_substantial_keyword_line(self, engine):
        """Test that short lines are skipped."""
        content = "Title\nShort db\nThe service writes to the database daily.\nMore database text here."
        assert engine.find_relevant_excerpt(T.DATABASE, content) == (
            "The service writes to the database daily."
        )

    def test_long_line_truncated(self, engine):
        """Test excerpts are capped with an ellipsis."""
        line = "database " + "x" * 300
        excerpt = engine.find_relevant_excerpt(T.DATABASE, line)
        assert len(excerpt) == 203
        assert excerpt.endswith("...")

    def test_falls_back_to_first_substantial_line(self, engine):
        """Test fallback when no line mentions a keyword."""
        assert engine.find_relevant_excerpt(T.WAF, "Hi\nNothing relevant here at all") == (
            "Nothing relevant here at all"
        )

    def test_no_substantial_lines(self, engine):
        """Test an empty excerpt for tiny content."""
        assert engine.find_relevant_excerpt(T.WAF, "a\nb") == ""


@pytest.mark.extraction
class TestExtractComponentDetails:
    """Tests for single-slot extraction without a backend."""

    @pytest.mark.asyncio
    async def test_positive_match(self, engine, login_documents):
        """Test a populated result references its evidence."""
        result = await engine.extract_component_details(
            T.DATABASE, "User Login", "Authenticate", login_documents
        )
        assert result.has_data is True
        assert result.confidence == pytest.approx(0.9)
        assert result.source_document_id == "doc-storage"
        assert result.source_excerpt == "Sessions are kept in a Postgres database."
        assert result.title == "Data Store"
        assert "User Login" in result.description
        assert "storage.md" in result.description

    @pytest.mark.asyncio
    async def test_title_synthesized_from_operation(self, engine, login_documents):
        """Test titles come from the operation, not the document text."""
        result = await engine.extract_component_details(
            T.USER_ACTION, "User Login", "", login_documents
        )
        assert result.title == "User initiates User Login"

    @pytest.mark.asyncio
    async def test_unknown_type(self, engine, login_documents):
        """Test an unknown type yields a no-data result."""
        result = await engine.extract_component_details("CACHE", "User Login", "", login_documents)
        assert result.has_data is False
        assert result.title == "CACHE"
        assert result.description == NO_DATA_DESCRIPTION

    @pytest.mark.asyncio
    async def test_no_match(self, engine, login_documents):
        """Test the normalized no-data result."""
        result = await engine.extract_component_details(T.WAF, "User Login", "", login_documents)
        assert result.has_data is False
        assert result.confidence == 0.0
        assert result.description == NO_DATA_DESCRIPTION
        assert result.title == "WAF"
        assert result.source_excerpt is None
        assert result.source_document_id is None


@pytest.mark.extraction
class TestExtractAllComponents:
    """Tests for extraction over every component type."""

    @pytest.mark.asyncio
    async def test_empty_corpus_all_greyed(self, engine):
        """Test that no documents yields 11 empty results."""
        results = await engine.extract_all_components("User Login", "", [])
        assert list(results) == list(COMPONENT_TYPES)
        assert all(r.has_data is False for r in results.values())
        assert all(r.confidence == 0.0 for r in results.values())
        assert all(r.description == NO_DATA_DESCRIPTION for r in results.values())

    @pytest.mark.asyncio
    async def test_login_corpus(self, engine, login_documents):
        """Test which slots the login documents populate."""
        results = await engine.extract_all_components("User Login", "", login_documents)
        populated = {t for t, r in results.items() if r.has_data}
        assert populated == {
            T.USER_ACTION,
            T.CLIENT_CODE,
            T.LOAD_BALANCER,
            T.API_GATEWAY,
            T.API_ENDPOINT,
            T.BACKEND_LOGIC,
            T.DATABASE,
        }
        for result in results.values():
            assert 0.0 <= result.confidence <= 1.0


@pytest.mark.extraction
class TestBackendExtraction:
    """Tests for extraction with a backend."""

    def test_has_backend(self):
        """Test backend presence is reported."""
        assert ExtractionEngine().has_backend is False
        assert ExtractionEngine(backend=RecordingBackend()).has_backend is True

    @pytest.mark.asyncio
    async def test_backend_phrasing_used(self, login_documents):
        """Test backend details replace synthesized text."""
        backend = RecordingBackend()
        engine = ExtractionEngine(backend=backend)
        result = await engine.extract_component_details(
            T.DATABASE, "User Login", "Authenticate", login_documents
        )
        assert result.title == "Session Store"
        assert result.description == "Stores login sessions"
        assert result.confidence == pytest.approx(0.9)
        assert len(backend.prompts) == 1

    @pytest.mark.asyncio
    async def test_backend_not_called_without_evidence(self, login_documents):
        """Test slots without evidence skip the backend."""
        backend = RecordingBackend()
        engine = ExtractionEngine(backend=backend)
        result = await engine.extract_component_details(T.WAF, "User Login", "", login_documents)
        assert result.has_data is False
        assert backend.prompts == []

    @pytest.mark.asyncio
    async def test_null_fields_fall_back(self, login_documents):
        """Test missing backend fields use synthesized text."""
        backend = RecordingBackend({"title": None, "description": None, "sourceExcerpt": None})
        engine = ExtractionEngine(backend=backend)
        result = await engine.extract_component_details(
            T.DATABASE, "User Login", "", login_documents
        )
        assert result.title == "Data Store"
        assert result.source_excerpt == "Sessions are kept in a Postgres database."

    @pytest.mark.asyncio
    async def test_backend_failure_degrades(self, login_documents):
        """Test a failing backend halves confidence and never raises."""
        engine = ExtractionEngine(backend=FailingBackend())
        result = await engine.extract_component_details(
            T.DATABASE, "User Login", "", login_documents
        )
        assert result.has_data is True
        assert result.confidence == pytest.approx(0.45)
        assert result.title == "Database"
        assert result.description == "Handles database for User Login"

    def test_prompt_contents(self, engine):
        """Test the prompt carries context, truncated content and template."""
        content = "database " * 1000
        prompt = engine.build_extraction_prompt(T.DATABASE, "User Login", "Authenticate", content)
        assert "Operation: User Login" in prompt
        assert "Description: Authenticate" in prompt
        assert content[:3000] in prompt
        assert content[:3001] not in prompt
        assert engine.get_prompt_template(T.DATABASE) in prompt
