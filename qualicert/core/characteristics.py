"""
Motor de validação de características do certificado de entrada.

Cada característica cadastrada no produto é confrontada com o valor que o
laboratório do fornecedor reportou. FAIL é resultado de negócio, não erro:
só entradas de programação inválidas (None) levantam exceção.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Union

from ..schema.certificate_models import (
    CertificateStatus,
    CertificateVerdict,
    CharacteristicResult,
    CharacteristicSpec,
    CheckKind,
    ReportedResult,
    Verdict,
)

logger = logging.getLogger(__name__)

REASON_NOT_REPORTED = "not reported"
REASON_NON_NUMERIC = "non-numeric value"
REASON_NO_CHARACTERISTICS = "no characteristics defined"

Number = Union[Decimal, float, int, str]


def parse_reported_number(value: Optional[str]) -> Optional[Decimal]:
    """
    Valor de laudo -> Decimal. Aceita vírgula decimal quando não há ponto
    ("99,5"), comum em laudos brasileiros. None se não for número finito.
    """
    if value is None:
        return None

    text = value.strip().replace(" ", "")
    # Decimal aceita "1_000"; em laudo isso não é número
    if "_" in text:
        return None
    if "," in text and "." not in text:
        text = text.replace(",", ".")

    try:
        number = Decimal(text)
    except InvalidOperation:
        return None

    return number if number.is_finite() else None


def characteristic_from_limits(
    name: str,
    unit: str = "",
    min_value: Optional[Number] = None,
    max_value: Optional[Number] = None,
    expected_value: Optional[str] = None,
    analysis_method: Optional[str] = None,
) -> CharacteristicSpec:
    """
    Monta o critério a partir da linha de product_characteristics
    (limites numéricos anuláveis). Com expected_value vira checagem exata.
    """
    if expected_value is not None:
        return CharacteristicSpec(
            name=name, unit=unit, check=CheckKind.EXACT,
            expected_value=expected_value, analysis_method=analysis_method,
        )

    return CharacteristicSpec(
        name=name,
        unit=unit,
        check=CheckKind.RANGE,
        min_value=Decimal(str(min_value)) if min_value is not None else None,
        max_value=Decimal(str(max_value)) if max_value is not None else None,
        analysis_method=analysis_method,
    )


def _check_range(spec: CharacteristicSpec, reported: str) -> CharacteristicResult:
    value = parse_reported_number(reported)
    if value is None:
        return CharacteristicResult(
            name=spec.name, reported_value=reported, unit=spec.unit,
            verdict=Verdict.FAIL, reason=REASON_NON_NUMERIC,
        )

    reason = None
    if spec.min_value is not None and value < spec.min_value:
        reason = f"below minimum {spec.min_value} {spec.unit}".rstrip()
    elif spec.max_value is not None and value > spec.max_value:
        reason = f"above maximum {spec.max_value} {spec.unit}".rstrip()

    return CharacteristicResult(
        name=spec.name, reported_value=reported, unit=spec.unit,
        verdict=Verdict.FAIL if reason else Verdict.PASS, reason=reason,
    )


def _check_exact(spec: CharacteristicSpec, reported: str) -> CharacteristicResult:
    expected = (spec.expected_value or "").strip()
    if reported.strip().casefold() == expected.casefold():
        return CharacteristicResult(
            name=spec.name, reported_value=reported, unit=spec.unit, verdict=Verdict.PASS,
        )

    return CharacteristicResult(
        name=spec.name, reported_value=reported, unit=spec.unit,
        verdict=Verdict.FAIL, reason=f"expected '{expected}'",
    )


def check_characteristic(spec: CharacteristicSpec, reported: Optional[str]) -> CharacteristicResult:
    if reported is None:
        return CharacteristicResult(
            name=spec.name, unit=spec.unit, verdict=Verdict.FAIL, reason=REASON_NOT_REPORTED,
        )

    if spec.check is CheckKind.EXACT:
        return _check_exact(spec, reported)
    return _check_range(spec, reported)


def validate_certificate(
    specs: Iterable[CharacteristicSpec],
    results: Iterable[ReportedResult],
) -> CertificateVerdict:
    """
    APPROVED somente se houver ao menos uma característica e todas passarem.
    Resultados reportados sem critério correspondente são ignorados.
    """
    if specs is None or results is None:
        raise TypeError("specs and results must be lists, not None")

    specs = list(specs)
    if not specs:
        return CertificateVerdict(
            overall=CertificateStatus.REJECTED,
            details=[CharacteristicResult(
                name="*", verdict=Verdict.FAIL, reason=REASON_NO_CHARACTERISTICS,
            )],
        )

    reported_by_name: Dict[str, str] = {}
    for result in results:
        # nome é vocabulário controlado do produto: comparação exata; primeiro vence
        reported_by_name.setdefault(result.name, result.reported_value)

    details: List[CharacteristicResult] = [
        check_characteristic(spec, reported_by_name.get(spec.name)) for spec in specs
    ]

    approved = all(detail.verdict is Verdict.PASS for detail in details)
    verdict = CertificateVerdict(
        overall=CertificateStatus.APPROVED if approved else CertificateStatus.REJECTED,
        details=details,
    )

    if not approved:
        logger.info(
            "Certificate rejected: %s",
            "; ".join(f"{d.name}: {d.reason}" for d in verdict.failed),
        )
    return verdict
