from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class OperationType(str, Enum): ##     tpNF: "1" = saída, qualquer outro = entrada
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class ParseWarning(FrozenModel): ##     Fallback permissivo aplicado (número -> 0, data -> agora), para revisão humana
    field: str
    raw_value: Optional[str] = None
    fallback: str
    message: str


class AddressRecord(FrozenModel):
    street: str = ""
    number: str = ""
    complement: Optional[str] = None
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""

    def one_line(self) -> str:
        """Logradouro, Número, Complemento, Bairro, Cidade - UF, CEP: xxxxx"""
        parts = []
        if self.street:
            parts.append(f"{self.street}, {self.number}" if self.number else self.street)
        if self.complement:
            parts.append(self.complement)
        if self.neighborhood:
            parts.append(self.neighborhood)
        if self.city and self.state:
            parts.append(f"{self.city} - {self.state}")
        elif self.city:
            parts.append(self.city)
        if self.postal_code:
            parts.append(f"CEP: {self.postal_code}")
        return ", ".join(parts)


class PartyRecord(FrozenModel): ##     Emitente ou destinatário
    tax_id_cnpj: Optional[str] = None
    tax_id_cpf: Optional[str] = None
    legal_name: str = ""
    trade_name: Optional[str] = None
    address: AddressRecord
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def tax_id(self) -> str:
        return self.tax_id_cnpj or self.tax_id_cpf or ""


class InvoiceRecord(FrozenModel):
    number: str
    series: str = ""
    model: Optional[str] = None
    issue_date: datetime
    due_date: Optional[datetime] = None
    operation_type: OperationType
    operation_nature: str = ""
    access_key: str = Field(..., min_length=1)
    protocol_number: Optional[str] = None
    protocol_date: Optional[datetime] = None
    notes: Optional[str] = None


class LineItemRecord(FrozenModel):
    external_code: str = ""
    description: str = ""
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit: str = ""
    unit_price: Decimal = Decimal("0")
    total_value: Decimal = Decimal("0")
    ncm_code: Optional[str] = None
    cfop_code: Optional[str] = None
    note: Optional[str] = None


class ParsedInvoiceDocument(FrozenModel): ##     Único produto da ingestão; pertence ao chamador
    invoice: InvoiceRecord
    emitter: PartyRecord
    recipient: PartyRecord
    items: Tuple[LineItemRecord, ...] = ()


class ParseOutcome(FrozenModel):
    document: ParsedInvoiceDocument
    warnings: List[ParseWarning] = Field(default_factory=list)


class PrecheckResult(FrozenModel): ##     Checagem textual barata, antes do parse completo
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class InvoiceSummary(FrozenModel): ##     Projeção para o card de preview
    number: str
    series: str
    issue_date_display: str
    recipient_name: str
    recipient_tax_id: str
    item_count: int
    total_value: Decimal
