"""
Shared error handling for the Feature Toggle service.
"""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class FeatureToggleException(Exception):
    """Base exception for the Feature Toggle service."""

    status_code: int = 400

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def cause_chain(self) -> List[str]:
        """Messages of this error and every error it was raised from."""
        chain = []
        seen = set()
        current: Optional[BaseException] = self
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            chain.append(str(current) or type(current).__name__)
            current = current.__cause__ or current.__context__
        return chain

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class CatalogError(FeatureToggleException):
    """The feature catalog could not be read or decoded."""

    def __init__(self, message: str = "Feature catalog unavailable", source: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.source = source
        merged = dict(details or {})
        if source is not None:
            merged.setdefault("source", source)
        super().__init__("CATALOG_ERROR", message, merged, status_code=503)
