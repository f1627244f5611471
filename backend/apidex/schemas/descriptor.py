"""
Apidex Backend — Pydantic Descriptor & Response Schemas
========================================================

What:  Pydantic models for endpoint documentation and the discovery document.
Why:   Endpoint modules export plain mappings; validating them against a schema
       at load time turns a silently-wrong /api/ document into a startup error.
How:   EndpointDescriptor is frozen (immutable after load). The aggregator
       returns AggregatedDocument, which FastAPI serializes as JSON.
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# Fixed verb set accepted in descriptors and by the dispatcher
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
ANY_METHOD = "ANY"

# MAJOR.MINOR.PATCH with optional -prerelease and +build
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


def normalize_method(method: str) -> str:
    """
    Upper-cases an HTTP method and checks it against the fixed verb set.

    Raises:
        ValueError: if the method is neither a known verb nor ANY.
    """
    if not isinstance(method, str):
        raise ValueError(f"method must be a string, got {type(method).__name__}")
    upper = method.strip().upper()
    if upper != ANY_METHOD and upper not in HTTP_METHODS:
        raise ValueError(
            f"Unsupported method '{method}'. Must be one of {HTTP_METHODS} or '{ANY_METHOD}'"
        )
    return upper


def methods_overlap(a: str, b: str) -> bool:
    """True when two normalized methods would answer the same request."""
    return a == b or ANY_METHOD in (a, b)


class EndpointDescriptor(BaseModel):
    """
    What:  Documentation record for one route.
    Who:   Exported by endpoint modules via ENDPOINTS; listed by GET /api/.
    When:  Created at module load time; immutable for the process lifetime.

    The (path, method) pair is the identity used for duplicate detection and
    for cross-checking against the routes a module registered.
    """

    path: str = Field(description="Route path, starting with '/'")
    method: str = Field(description="HTTP verb or 'ANY'")
    description: str = Field(description="What the endpoint does")
    group: str = Field(default="General", description="Documentation grouping")
    version: Optional[str] = Field(default=None, description="Semantic version")

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"path must start with '/', got '{v}'")
        return v

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v):
        return normalize_method(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be empty")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not SEMVER_PATTERN.match(v):
            raise ValueError(f"version must be a semantic version (e.g. 1.0.0), got '{v}'")
        return v

    @property
    def key(self):
        """(path, method) identity of the described route."""
        return (self.path, self.method)


class AggregatedDocument(BaseModel):
    """
    What:  Response body of the discovery endpoint.
    Who:   Built by EndpointAggregator.snapshot() on every GET /api/.

    endpoints preserves module load order, then each module's export order.
    """

    name: str = Field(description="API name")
    version: str = Field(description="API version")
    status: str = Field(description="Service status label")
    endpoints: List[EndpointDescriptor] = Field(description="All documented routes")
    timestamp: datetime = Field(description="When this document was generated (UTC)")


class ErrorResponse(BaseModel):
    """
    What:  Structured body returned with HTTP 500 by handlers and the
           application-level safety net.
    """

    status: str = Field(default="error")
    message: str = Field(description="Human-readable summary")
    error: str = Field(description="Technical detail")
