from typing import List, Optional, Dict, Literal, Any
from datetime import datetime
from pydantic import BaseModel, Field
from .models import ParsedInvoiceDocument, ParseWarning

Stage = Literal["PRECHECK", "PARSE", "VALIDATE"]


class OrchestratorEvent(BaseModel):
    """
    Evento imutável de uma etapa da importação.
    Usado para trilha de auditoria e observabilidade.
    """
    timestamp: datetime = Field(default_factory=datetime.now)
    stage: Stage
    status: Literal["SUCCESS", "FAILURE"]
    # details deve ser flat e serializável
    details: Dict[str, Any] = Field(default_factory=dict)
    error_policy: Literal["ABORT", "CONTINUE"] = "ABORT"


class QualityIssue(BaseModel):
    """Problema de qualidade encontrado num documento já parseado."""
    code: str
    field: str
    severity: Literal["critical", "warning"]
    message: str


class PipelineResult(BaseModel):
    """
    Container final da importação de um XML.
    Guarda a trilha de eventos e, se não houve erro fatal, o payload.
    """
    trace_id: str
    execution_id: str
    tenant_id: str

    start_time: datetime
    end_time: Optional[datetime] = None

    status: Literal["success", "partial", "error"]
    # parse | malformed | missing_field, só quando status == error
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    events: List[OrchestratorEvent] = Field(default_factory=list)

    payload: Optional[ParsedInvoiceDocument] = None
    parse_warnings: List[ParseWarning] = Field(default_factory=list)
    validation_issues: List[QualityIssue] = Field(default_factory=list)
    trust_score: float = Field(default=0.0, ge=0.0, le=1.0)

    # hash do XML, tamanho
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)
