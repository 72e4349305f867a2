import hashlib
import logging
import time
from datetime import datetime
from typing import Dict, Union

from .core.errors import MalformedDocumentError, MissingFieldError, NFeImportError, ParseError
from .core.nfe_parser import parse_nfe_xml_with_warnings, validate_nfe_xml
from .core.quality import check_document, trust_score
from .schema.orchestrator_models import PipelineResult, OrchestratorEvent

logger = logging.getLogger(__name__)

ERROR_KINDS = (
    (ParseError, "parse"),
    (MalformedDocumentError, "malformed"),
    (MissingFieldError, "missing_field"),
)


def error_kind(error: NFeImportError) -> str:
    for error_type, kind in ERROR_KINDS:
        if isinstance(error, error_type):
            return kind
    return "import"


class Orchestrator:
    """
    Coordenador da importação de XML NF-e.
    Une Pré-checagem -> Parse -> Validação com trilha de eventos.
    NÃO decide persistência: o chamador mapeia o payload para certificado/cliente.
    """

    def _calculate_hash(self, data: Union[str, bytes]) -> str:
        """Gera SHA-256 determinístico do conteúdo."""
        if isinstance(data, str):
            content = data.encode('utf-8')
        else:
            content = data
        return hashlib.sha256(content).hexdigest()

    def process(self, xml_text: str, context: Dict[str, str]) -> PipelineResult:
        """
        Executa a importação completa.

        Args:
            xml_text: conteúdo do XML já decodificado (UTF-8).
            context: dicionário com 'trace_id', 'execution_id', 'tenant_id'.
        """
        result = PipelineResult(
            trace_id=context.get("trace_id", "unknown_trace"),
            execution_id=context.get("execution_id", "unknown_exec"),
            tenant_id=context.get("tenant_id", "unknown_tenant"),
            start_time=datetime.now(),
            status="error",  # pessimista por padrão
            raw_metadata={
                "input_hash_sha256": self._calculate_hash(xml_text or ""),
                "input_size_chars": len(xml_text or ""),
            },
        )

        try:
            # 1. PRECHECK: barato e só consultivo, o parse dá o veredito final
            start = time.time()
            precheck = validate_nfe_xml(xml_text)
            result.events.append(OrchestratorEvent(
                stage="PRECHECK",
                status="SUCCESS" if precheck.is_valid else "FAILURE",
                details={
                    "duration_sec": round(time.time() - start, 4),
                    "errors": precheck.errors,
                },
                error_policy="CONTINUE",
            ))

            # 2. PARSE
            start = time.time()
            try:
                outcome = parse_nfe_xml_with_warnings(xml_text)
            except NFeImportError as e:
                logger.warning("NF-e import %s failed at PARSE: %s", result.execution_id, e)
                result.error_kind = error_kind(e)
                result.error_message = str(e)
                result.events.append(OrchestratorEvent(
                    stage="PARSE",
                    status="FAILURE",
                    details={"error": str(e), "error_kind": result.error_kind},
                    error_policy="ABORT",
                ))
                return result

            document = outcome.document
            result.events.append(OrchestratorEvent(
                stage="PARSE",
                status="SUCCESS",
                details={
                    "duration_sec": round(time.time() - start, 4),
                    "access_key": document.invoice.access_key,
                    "items_count": len(document.items),
                    "warnings_count": len(outcome.warnings),
                },
                error_policy="CONTINUE",
            ))

            # 3. VALIDATE: problemas de qualidade rebaixam para 'partial', não abortam
            start = time.time()
            issues = check_document(document, outcome.warnings)
            result.events.append(OrchestratorEvent(
                stage="VALIDATE",
                status="SUCCESS" if not issues else "FAILURE",
                details={
                    "duration_sec": round(time.time() - start, 4),
                    "issues_count": len(issues),
                    "critical_count": sum(1 for i in issues if i.severity == "critical"),
                },
                error_policy="CONTINUE",
            ))

            result.payload = document
            result.parse_warnings = outcome.warnings
            result.validation_issues = issues
            result.trust_score = trust_score(issues)
            result.status = "success" if not issues else "partial"

        finally:
            result.end_time = datetime.now()

        return result
