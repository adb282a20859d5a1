"""
Extraction Engine.

Scores document evidence for each architecture component slot and turns
the strongest evidence into component details. Evidence is keyword based:
each slot has a fixed vocabulary, matched case-insensitively as whole
words or phrases.

The engine never raises for malformed or empty input or unknown component
types. The worst case for a slot is a ``has_data=False`` result with zero
confidence.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from flowscribe.config.models import ExtractionConfig
from flowscribe.extraction.backend import ExtractionBackend
from flowscribe.extraction.catalog import (
    COMPONENT_KEYWORDS,
    DEFAULT_TITLES,
    PROMPT_TEMPLATES,
    mock_description,
    mock_title,
)
from flowscribe.models.base import COMPONENT_TYPES, ArchitectureComponentType
from flowscribe.models.documents import ComponentDetection, Document, ExtractionResult

logger = logging.getLogger(__name__)

# Lines at most this long are not useful as excerpts
_MIN_EXCERPT_LINE = 10


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(r"(?<![a-z0-9])" + re.escape(keyword.lower()) + r"(?![a-z0-9])")


_KEYWORD_PATTERNS: dict[ArchitectureComponentType, tuple[re.Pattern[str], ...]] = {
    component_type: tuple(_keyword_pattern(kw) for kw in keywords)
    for component_type, keywords in COMPONENT_KEYWORDS.items()
}


def _shadowing_patterns(component_type: ArchitectureComponentType) -> tuple[re.Pattern[str], ...]:
    """Other slots' phrases that contain one of this slot's keywords."""
    own = _KEYWORD_PATTERNS[component_type]
    return tuple(
        _keyword_pattern(phrase)
        for other, phrases in COMPONENT_KEYWORDS.items()
        if other is not component_type
        for phrase in phrases
        if any(pattern.search(phrase) for pattern in own)
    )


# "firewall" inside "web application firewall" is WAF evidence, not FIREWALL
_SHADOWING_PATTERNS = {
    component_type: _shadowing_patterns(component_type) for component_type in COMPONENT_KEYWORDS
}


def _visible_text(component_type: ArchitectureComponentType, content: str) -> str:
    """Lowercased content with phrases owned by other slots blanked out."""
    text = content.lower()
    for pattern in _SHADOWING_PATTERNS[component_type]:
        text = pattern.sub(lambda match: " " * len(match.group(0)), text)
    return text


def _resolve_type(component_type: Any) -> Optional[ArchitectureComponentType]:
    try:
        return ArchitectureComponentType(component_type)
    except ValueError:
        logger.warning("Unknown component type %r, treating as having no evidence", component_type)
        return None


class ExtractionEngine:
    """Extracts per-slot component details from a document corpus.

    Usage:
        engine = ExtractionEngine()
        results = await engine.extract_all_components(
            "User Login", "Authenticate with email and password", documents
        )
        results[ArchitectureComponentType.DATABASE].has_data
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        backend: Optional[ExtractionBackend] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Evidence scoring settings
            backend: Optional backend used to phrase positive matches
        """
        self._config = config or ExtractionConfig()
        self._backend = backend

    @property
    def config(self) -> ExtractionConfig:
        return self._config

    @property
    def has_backend(self) -> bool:
        return self._backend is not None

    def get_component_keywords(self, component_type: ArchitectureComponentType | str) -> list[str]:
        """Keywords that signal evidence for a component type (empty when unknown)."""
        resolved = _resolve_type(component_type)
        return list(COMPONENT_KEYWORDS[resolved]) if resolved is not None else []

    def get_prompt_template(self, component_type: ArchitectureComponentType | str) -> str:
        """Backend instruction for a component type, requiring JSON output.

        Unknown types get an empty template.
        """
        resolved = _resolve_type(component_type)
        return PROMPT_TEMPLATES[resolved] if resolved is not None else ""

    def count_keyword_matches(self, component_type: ArchitectureComponentType, content: str) -> int:
        """Number of distinct keywords of a type present in the content.

        Keywords only present inside another slot's phrase are not counted.
        """
        text = _visible_text(component_type, content)
        return sum(1 for pattern in _KEYWORD_PATTERNS[component_type] if pattern.search(text))

    def confidence_for_matches(self, match_count: int) -> float:
        """Confidence for a number of distinct keyword matches.

        Non-decreasing in ``match_count`` and bounded to [0, 1].
        """
        cfg = self._config
        if match_count < cfg.min_keyword_matches or match_count <= 0:
            return 0.0
        if match_count == 1:
            return cfg.single_match_confidence
        return min(cfg.max_confidence, cfg.base_confidence + match_count * cfg.per_match_confidence)

    def detect_component_data(
        self,
        component_type: ArchitectureComponentType | str,
        documents: Optional[Iterable[Any]],
    ) -> ComponentDetection:
        """Find the document with the strongest evidence for a component type.

        Ties go to the earliest document.

        Args:
            component_type: Slot to detect evidence for
            documents: Candidate documents

        Returns:
            Detection with ``has_data`` set when a document reaches the
            minimum number of keyword matches; unknown types never have data
        """
        component_type = _resolve_type(component_type)
        if component_type is None:
            return ComponentDetection(has_data=False)
        best: Optional[Document] = None
        best_count = 0

        for doc in _coerce_documents(documents):
            count = self.count_keyword_matches(component_type, doc.content)
            if count > best_count:
                best, best_count = doc, count

        if best is None or best_count < self._config.min_keyword_matches:
            return ComponentDetection(has_data=False, confidence=0.0, match_count=best_count)

        return ComponentDetection(
            has_data=True,
            confidence=self.confidence_for_matches(best_count),
            relevant_document=best,
            match_count=best_count,
        )

    async def extract_component_details(
        self,
        component_type: ArchitectureComponentType | str,
        operation_name: str,
        operation_description: str,
        documents: Optional[Iterable[Any]],
    ) -> ExtractionResult:
        """Extract details for one component type.

        Args:
            component_type: Slot to extract
            operation_name: Name of the documented operation
            operation_description: Description of the operation
            documents: Evidence corpus

        Returns:
            ExtractionResult for the slot; unknown types yield an empty result
        """
        resolved = _resolve_type(component_type)
        if resolved is None:
            return ExtractionResult(has_data=False, title=str(component_type))
        component_type = resolved
        docs = _coerce_documents(documents)
        detection = self.detect_component_data(component_type, docs)
        document = detection.relevant_document

        if not detection.has_data or document is None:
            return ExtractionResult(has_data=False, title=DEFAULT_TITLES[component_type])

        op_name = (operation_name or "").strip() or "the operation"
        excerpt = self.find_relevant_excerpt(component_type, document.content) or None

        if not self.has_backend:
            return self._synthesized_result(component_type, op_name, document, excerpt, detection.confidence)

        prompt = self.build_extraction_prompt(
            component_type, op_name, operation_description or "", document.content
        )
        try:
            details = await self._backend.extract(prompt)
        except Exception as e:
            logger.warning(
                "Extraction backend failed for %s, using fallback: %s",
                component_type.value,
                e,
            )
            return ExtractionResult(
                has_data=True,
                confidence=detection.confidence * 0.5,
                title=DEFAULT_TITLES[component_type],
                description=f"Handles {component_type.label} for {op_name}",
                source_excerpt=excerpt,
                source_document_id=document.id,
                relevant_document=document,
            )

        synthesized = self._synthesized_result(
            component_type, op_name, document, excerpt, detection.confidence
        )
        return synthesized.model_copy(
            update={
                "title": details.get("title") or synthesized.title,
                "description": details.get("description") or synthesized.description,
                "source_excerpt": details.get("sourceExcerpt") or synthesized.source_excerpt,
            }
        )

    async def extract_all_components(
        self,
        operation_name: str,
        operation_description: str,
        documents: Optional[Iterable[Any]],
    ) -> dict[ArchitectureComponentType, ExtractionResult]:
        """Extract details for every component type, in canonical order."""
        docs = _coerce_documents(documents)
        results: dict[ArchitectureComponentType, ExtractionResult] = {}
        for component_type in COMPONENT_TYPES:
            results[component_type] = await self.extract_component_details(
                component_type, operation_name, operation_description, docs
            )

        found = sum(1 for r in results.values() if r.has_data)
        logger.info(
            "Extracted %d/%d component types for '%s' from %d documents",
            found,
            len(results),
            operation_name,
            len(docs),
        )
        return results

    def build_extraction_prompt(
        self,
        component_type: ArchitectureComponentType,
        operation_name: str,
        operation_description: str,
        document_content: str,
    ) -> str:
        """Full backend prompt: operation context, document text and template."""
        content = document_content[: self._config.prompt_document_chars]
        return (
            f"Operation: {operation_name}\n"
            f"Description: {operation_description}\n\n"
            f"Document content:\n{content}\n\n"
            f"{PROMPT_TEMPLATES[component_type]}\n\n"
            "If no relevant information is found, respond with:\n"
            '{"title": null, "description": null, "sourceExcerpt": null}\n'
        )

    def find_relevant_excerpt(self, component_type: ArchitectureComponentType, content: str) -> str:
        """First substantial line mentioning the type's keywords.

        Falls back to the first substantial line, then to an empty string.
        """
        lines = [line.strip() for line in content.splitlines()]
        candidates = [line for line in lines if len(line) > _MIN_EXCERPT_LINE]
        patterns = _KEYWORD_PATTERNS[component_type]

        for line in candidates:
            visible = _visible_text(component_type, line)
            if any(p.search(visible) for p in patterns):
                return self._truncate(line)

        return self._truncate(candidates[0]) if candidates else ""

    def _truncate(self, text: str) -> str:
        limit = self._config.excerpt_max_length
        return text[:limit] + "..." if len(text) > limit else text

    def _synthesized_result(
        self,
        component_type: ArchitectureComponentType,
        operation_name: str,
        document: Document,
        excerpt: Optional[str],
        confidence: float,
    ) -> ExtractionResult:
        source = document.filename or document.id
        return ExtractionResult(
            has_data=True,
            confidence=confidence,
            title=mock_title(component_type, operation_name),
            description=f"{mock_description(component_type, operation_name)}. Evidence found in {source}.",
            source_excerpt=excerpt,
            source_document_id=document.id,
            relevant_document=document,
        )


def _coerce_documents(documents: Optional[Iterable[Any]]) -> list[Document]:
    """Validate documents, skipping entries that are not usable."""
    if documents is None:
        return []

    valid: list[Document] = []
    for item in documents:
        if isinstance(item, Document):
            valid.append(item)
            continue
        if isinstance(item, Mapping):
            try:
                valid.append(Document.model_validate(dict(item)))
                continue
            except ValidationError as e:
                logger.warning("Skipping malformed document: %s", e.errors()[:1])
                continue
        logger.warning("Skipping unsupported document entry of type %s", type(item).__name__)
    return valid
