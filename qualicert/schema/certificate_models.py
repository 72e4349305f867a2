from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class CheckKind(str, Enum):
    RANGE = "RANGE"   # faixa numérica [min, max]
    EXACT = "EXACT"   # valor esperado / enumerado


class Verdict(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


class CertificateStatus(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RiskCategory(str, Enum):
    EXPIRED = "EXPIRED"
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    SAFE = "SAFE"


class CharacteristicSpec(BaseModel):
    """
    Critério de aceitação de uma característica do produto.
    Vem do cadastro do produto (dado externo, só consumido aqui).
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    unit: str = ""
    check: CheckKind = CheckKind.RANGE
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    expected_value: Optional[str] = None
    analysis_method: Optional[str] = None

    @model_validator(mode="after")
    def check_limits(self) -> "CharacteristicSpec":
        if self.check is CheckKind.EXACT and self.expected_value is None:
            raise ValueError(f"EXACT characteristic '{self.name}' needs expected_value")
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            raise ValueError(f"characteristic '{self.name}': min_value greater than max_value")
        return self


class ReportedResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    reported_value: str


class CharacteristicResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    reported_value: Optional[str] = None
    verdict: Verdict
    reason: Optional[str] = None
    unit: str = ""


class CertificateVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: CertificateStatus
    details: List[CharacteristicResult] = Field(default_factory=list)

    @property
    def failed(self) -> List[CharacteristicResult]:
        return [d for d in self.details if d.verdict is Verdict.FAIL]


class ExpirationRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    days_until: int
    category: RiskCategory


class ExpirationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    expired: int = 0
    critical: int = 0
    warning: int = 0
    safe: int = 0

    @computed_field
    @property
    def total(self) -> int:
        return self.expired + self.critical + self.warning + self.safe
