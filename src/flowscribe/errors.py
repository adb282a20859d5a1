"""Exception types raised by the FlowScribe core."""


class FlowscribeError(Exception):
    """Base exception for FlowScribe errors."""

    pass


class OperationNotFoundError(FlowscribeError):
    """Raised when diagram generation is requested for an unknown operation."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"Operation not found: {operation_id}")
        self.operation_id = operation_id


class InvalidExportFormatError(FlowscribeError, ValueError):
    """Raised when a diagram export is requested in an unsupported format."""

    def __init__(self, export_format: str) -> None:
        super().__init__(f"Unsupported export format: {export_format}")
        self.export_format = export_format


class ExtractionBackendError(FlowscribeError):
    """Raised by an extraction backend when it cannot produce a result."""

    pass
