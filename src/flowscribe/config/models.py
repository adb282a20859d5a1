"""
Configuration Data Models.

Defines all configuration schemas using Pydantic for validation
and type safety.
"""

import math
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Weight per component type used by weighted scoring. Unknown types
# fall back to DEFAULT.
DEFAULT_COMPONENT_WEIGHTS: dict[str, float] = {
    "USER_ACTION": 1.0,
    "SYSTEM": 1.2,
    "EXTERNAL_SYSTEM": 1.1,
    "DATABASE": 1.3,
    "QUEUE": 1.0,
    "CACHE": 0.9,
    "DEFAULT": 1.0,
}


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ExtractionConfig(BaseModel):
    """Tuning for keyword evidence scoring.

    Attributes:
        min_keyword_matches: Distinct keyword matches needed for evidence
        single_match_confidence: Confidence for exactly one match
        base_confidence: Base of the multi-match confidence curve
        per_match_confidence: Confidence added per distinct match
        max_confidence: Upper bound on keyword confidence
        excerpt_max_length: Maximum excerpt length before truncation
        prompt_document_chars: Document characters sent to a backend
    """

    min_keyword_matches: int = Field(default=1, ge=1)
    single_match_confidence: float = Field(default=0.4, ge=0.0, le=1.0)
    base_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    per_match_confidence: float = Field(default=0.1, ge=0.0, le=1.0)
    max_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    excerpt_max_length: int = Field(default=200, ge=20)
    prompt_document_chars: int = Field(default=3000, ge=100)

    @model_validator(mode="after")
    def validate_curve(self) -> "ExtractionConfig":
        """Keep the confidence curve monotone across the 1 -> 2 match step."""
        two_matches = min(
            self.max_confidence,
            self.base_confidence + 2 * self.per_match_confidence,
        )
        if self.single_match_confidence > two_matches:
            raise ValueError(
                "single_match_confidence must not exceed the two-match confidence"
            )
        return self


class LLMConfig(BaseModel):
    """Configuration for the optional LLM extraction backend.

    Attributes:
        enabled: Use the LLM backend for positive matches
        model: Model identifier sent to the API
        base_url: API base URL
        timeout: Request timeout in seconds
        max_retries: Maximum attempts per request
        max_tokens: Maximum output tokens
        temperature: Sampling temperature
    """

    enabled: bool = Field(default=False, description="Enable LLM extraction")
    model: str = Field(
        default="anthropic/claude-3-5-haiku",
        description="Model identifier",
    )
    base_url: str = Field(default="https://openrouter.ai/api/v1")
    timeout: float = Field(default=60.0, gt=0.0)
    max_retries: int = Field(default=3, ge=1, le=10)
    max_tokens: int = Field(default=1024, ge=1)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)


class OrchestratorSettings(BaseModel):
    """Configuration for diagram generation jobs.

    Attributes:
        step_delay: Pause in seconds after assembling each component
    """

    step_delay: float = Field(default=0.05, ge=0.0, le=10.0)


class ScoringConfig(BaseModel):
    """Configuration for the scoring engine.

    Attributes:
        component_weights: Weights merged over the defaults
        trend_limit: Default number of historical runs in trends
    """

    component_weights: dict[str, float] = Field(default_factory=dict)
    trend_limit: int = Field(default=10, ge=1, le=1000)

    @field_validator("component_weights")
    @classmethod
    def validate_weights(cls, v: dict[str, float]) -> dict[str, float]:
        """Reject negative and non-finite weights (YAML .inf and .nan)."""
        for name, weight in v.items():
            if not math.isfinite(weight) or weight < 0:
                raise ValueError(f"Weight for {name} must be a finite non-negative number")
        return v

    def effective_weights(self) -> dict[str, float]:
        """Defaults with the configured weights merged on top."""
        return {**DEFAULT_COMPONENT_WEIGHTS, **self.component_weights}


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level for the flowscribe logger
        format: Log record format for the file handler
        file: Optional log file path
    """

    level: LogLevel = Field(default=LogLevel.INFO)
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file: Optional[str] = Field(default=None, description="Log file path")


class FlowscribeConfig(BaseModel):
    """Root configuration for the entire system.

    Attributes:
        extraction: Keyword evidence scoring
        llm: Optional LLM extraction backend
        orchestrator: Generation job settings
        scoring: Scoring engine settings
        logging: Logging settings
        debug: Enable debug mode
    """

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    debug: bool = Field(default=False, description="Enable debug mode")

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert to YAML-friendly dictionary."""
        return self.model_dump(mode="json", exclude_none=True)
