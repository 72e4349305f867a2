"""Checagens de qualidade sobre a NF-e já normalizada (não bloqueiam a importação)."""
import logging
from typing import Iterable, List

from ..schema.models import ParsedInvoiceDocument, ParseWarning
from ..schema.orchestrator_models import QualityIssue
from .text_normalizer import only_digits
from .validators import nfe_key_validator, tax_id_validator

logger = logging.getLogger(__name__)

CRITICAL_PENALTY = 0.5
WARNING_PENALTY = 0.1


def check_document(
    document: ParsedInvoiceDocument,
    parse_warnings: Iterable[ParseWarning] = (),
) -> List[QualityIssue]:
    issues: List[QualityIssue] = []

    key_check = nfe_key_validator(document.invoice.access_key)
    if not key_check["valido"]:
        issues.append(QualityIssue(
            code="invalid_access_key", field="invoice.access_key",
            severity="critical", message=key_check["erro"],
        ))

    emitter_check = tax_id_validator(document.emitter.tax_id_cnpj, document.emitter.tax_id_cpf)
    if not emitter_check["valido"]:
        issues.append(QualityIssue(
            code="invalid_emitter_tax_id", field="emitter.tax_id",
            severity="critical", message=emitter_check["erro"],
        ))
    elif key_check["valido"] and document.emitter.tax_id_cnpj:
        # CNPJ embutido na chave deve ser o do emitente
        if only_digits(document.emitter.tax_id_cnpj) != key_check["chave_limpa"][6:20]:
            issues.append(QualityIssue(
                code="access_key_emitter_mismatch", field="invoice.access_key",
                severity="warning", message="CNPJ da chave de acesso difere do CNPJ do emitente",
            ))

    recipient_check = tax_id_validator(document.recipient.tax_id_cnpj, document.recipient.tax_id_cpf)
    if not recipient_check["valido"]:
        issues.append(QualityIssue(
            code="invalid_recipient_tax_id", field="recipient.tax_id",
            severity="warning", message=recipient_check["erro"],
        ))

    if not document.items:
        issues.append(QualityIssue(
            code="no_items", field="items", severity="warning",
            message="NF-e sem itens (nenhum bloco det)",
        ))

    for index, item in enumerate(document.items, start=1):
        if item.quantity == 0:
            issues.append(QualityIssue(
                code="zero_quantity", field=f"items[{index}].quantity", severity="warning",
                message=f"Item {index} ({item.external_code or item.description}) com quantidade zero",
            ))

    for warning in parse_warnings:
        issues.append(QualityIssue(
            code="parse_fallback", field=warning.field, severity="warning", message=warning.message,
        ))

    if issues:
        logger.info(
            "NF-e %s: %d quality issue(s)", document.invoice.access_key, len(issues)
        )
    return issues


def trust_score(issues: Iterable[QualityIssue]) -> float:
    score = 1.0
    for issue in issues:
        score -= CRITICAL_PENALTY if issue.severity == "critical" else WARNING_PENALTY
    return round(max(score, 0.0), 2)
