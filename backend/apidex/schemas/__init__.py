"""Pydantic models exchanged between endpoint modules, the registry and clients."""

from apidex.schemas.descriptor import (
    ANY_METHOD,
    HTTP_METHODS,
    AggregatedDocument,
    EndpointDescriptor,
    ErrorResponse,
    methods_overlap,
    normalize_method,
)

__all__ = [
    "ANY_METHOD",
    "HTTP_METHODS",
    "AggregatedDocument",
    "EndpointDescriptor",
    "ErrorResponse",
    "methods_overlap",
    "normalize_method",
]
