"""
Input and extraction models.

Documents and operation metadata are supplied by the surrounding
application; extraction results are produced once per component slot
per extraction pass.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

NO_DATA_DESCRIPTION = "No relevant data found in documents"


class Document(BaseModel):
    """Pre-extracted text document used as evidence.

    Attributes:
        id: Document identifier
        filename: Original file name
        content: Extracted plain text
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Document identifier")
    filename: str = Field(default="", description="Original file name")
    content: str = Field(default="", description="Extracted plain text")


class OperationInfo(BaseModel):
    """The documented flow a diagram is generated for.

    Attributes:
        id: Operation identifier
        name: Human readable operation name
        description: Free-text description of the operation
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Operation identifier")
    name: str = Field(..., description="Operation name", examples=["User Login"])
    description: str = Field(default="", description="Operation description")


class ComponentDetection(BaseModel):
    """Evidence verdict for one component slot against a corpus."""

    has_data: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    relevant_document: Optional[Document] = None
    match_count: int = Field(default=0, ge=0)


class ExtractionResult(BaseModel):
    """Extraction outcome for one component slot.

    A result without data always has zero confidence and the fixed
    "no data" description.

    Attributes:
        has_data: Whether supporting evidence was found
        confidence: Confidence in the evidence, 0.0 to 1.0
        title: Component title
        description: Component description
        source_excerpt: Text around the matched evidence
        source_document_id: ID of the document the evidence came from
        relevant_document: The document the evidence came from
    """

    has_data: bool = Field(..., description="Whether evidence was found")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    title: str = Field(..., description="Component title")
    description: str = Field(default=NO_DATA_DESCRIPTION)
    source_excerpt: Optional[str] = None
    source_document_id: Optional[str] = None
    relevant_document: Optional[Document] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _normalize_missing_data(self) -> "ExtractionResult":
        if not self.has_data:
            self.confidence = 0.0
            self.description = NO_DATA_DESCRIPTION
            self.source_excerpt = None
            self.source_document_id = None
            self.relevant_document = None
        return self
