"""
Pydantic schemas for API contracts.
Separates business context from transport layer.
"""
from datetime import date, datetime
from typing import Optional, Literal, Dict, List
from pydantic import BaseModel, Field, field_validator
import json

from qualicert.schema.certificate_models import (
    CharacteristicSpec,
    ExpirationRisk,
    ExpirationSummary,
    ReportedResult,
)


class BusinessContext(BaseModel):
    """
    Business context for an import.
    NEVER contains file content - only metadata.
    """
    tenant_id: str = Field(..., min_length=1, max_length=100, description="Tenant identifier")
    trace_id: Optional[str] = Field(None, description="Distributed tracing ID")
    execution_id: Optional[str] = Field(None, description="Unique execution identifier")
    source: Optional[str] = Field(None, description="Upload origin (upload, email, erp)")

    @field_validator("tenant_id")
    @classmethod
    def validate_tenant_id(cls, v: str) -> str:
        """Ensure tenant_id contains only safe characters."""
        if not v.replace("-", "").replace("_", "").isalnum():
            raise ValueError("tenant_id must contain only alphanumeric, dash, or underscore")
        return v


class ImportErrorResponse(BaseModel):
    """
    Error body for rejected XML files.
    `kind` tells the UI which message to show the user.
    """
    kind: str = Field(..., description="parse | malformed | missing_field")
    message: str
    detail: str
    field: Optional[str] = None


class CertificateValidationRequest(BaseModel):
    characteristics: List[CharacteristicSpec]
    results: List[ReportedResult]


class LotExpiration(BaseModel):
    lot: str
    expiration_date: date


class ExpirationRequest(BaseModel):
    lots: List[LotExpiration]
    as_of: Optional[date] = None


class LotRisk(BaseModel):
    lot: str
    risk: ExpirationRisk


class ExpirationResponse(BaseModel):
    summary: ExpirationSummary
    lots: List[LotRisk]


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)
    checks: Dict[str, bool] = Field(default_factory=dict)


def parse_context_from_form(context_str: str) -> BusinessContext:
    """
    Parse and validate context from form-data string.

    Raises:
        ValueError: If JSON is invalid or validation fails
    """
    try:
        context_dict = json.loads(context_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in context field: {e}")

    try:
        return BusinessContext(**context_dict)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Context validation failed: {e}")
