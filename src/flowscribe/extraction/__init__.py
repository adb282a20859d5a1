"""
FlowScribe - Extraction

Keyword evidence scoring over a document corpus and optional LLM
phrasing of the matched components.
"""

from flowscribe.extraction.backend import ExtractionBackend, LLMExtractionBackend
from flowscribe.extraction.catalog import COMPONENT_KEYWORDS, DEFAULT_TITLES, PROMPT_TEMPLATES
from flowscribe.extraction.engine import ExtractionEngine

__all__ = [
    "COMPONENT_KEYWORDS",
    "DEFAULT_TITLES",
    "ExtractionBackend",
    "ExtractionEngine",
    "LLMExtractionBackend",
    "PROMPT_TEMPLATES",
]
