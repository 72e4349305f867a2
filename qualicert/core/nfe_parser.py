"""
Normalizador de XML NF-e.

Pipeline:
1. build_tree: texto -> árvore XmlNode (ParseError se mal formado)
2. find_nfe_root: reconhece o envelope (MalformedDocumentError se nenhum)
3. extração de ide / emit / dest / det com fallbacks permissivos
4. ParsedInvoiceDocument imutável + lista de ParseWarning

Erros estruturais (bloco inteiro ausente) abortam; dado sujo dentro de um
bloco (número ilegível, data inválida) vira valor padrão + aviso.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Generic, List, Optional, Sequence, TypeVar, Union

from ..schema.models import (
    AddressRecord,
    InvoiceRecord,
    InvoiceSummary,
    LineItemRecord,
    OperationType,
    ParsedInvoiceDocument,
    ParseOutcome,
    ParseWarning,
    PartyRecord,
    PrecheckResult,
)
from .errors import MissingFieldError
from .shapes import RootMatch, find_nfe_root
from .text_normalizer import clean_text
from .xml_tree import XmlNode, as_list, build_tree, first_field, first_node, get_field, get_node, get_nodes, get_path

logger = logging.getLogger(__name__)

T = TypeVar("T")

ZERO = Decimal("0")
ACCESS_KEY_PREFIX = "NFe"
OUTBOUND_CODE = "1"

PRECHECK_MARKERS = ("NFe", "nfe", "infNFe")
PRECHECK_SECTIONS = ("emit", "dest", "ide", "det")

DATE_FORMATS = ("%d/%m/%Y %H:%M:%S", "%d/%m/%Y")

# papel -> (bloco, bloco de endereço) com a grafia do leiaute oficial
PARTY_LAYOUT = {
    "emitter": ("emit", "enderEmit"),
    "recipient": ("dest", "enderDest"),
}

# alguns ERPs trocam a tag de endereço entre emit e dest
ADDRESS_TAGS = ("enderEmit", "enderDest")

# campo do AddressRecord -> tag do leiaute
ADDRESS_LAYOUT = (
    ("street", "xLgr"),
    ("number", "nro"),
    ("neighborhood", "xBairro"),
    ("city", "xMun"),
    ("state", "UF"),
    ("postal_code", "CEP"),
)


# PARSE PERMISSIVO

@dataclass(frozen=True)
class Lenient(Generic[T]):
    """Valor convertido + aviso quando um fallback foi aplicado."""
    value: T
    warning: Optional[ParseWarning] = None


def lenient_decimal(raw: Optional[str], field: str) -> Lenient[Decimal]:
    """Texto -> Decimal; ausente, ilegível ou não finito vira 0 com aviso."""
    if raw is None:
        return Lenient(ZERO, ParseWarning(
            field=field, raw_value=None, fallback="0",
            message=f"{field} ausente, assumido 0",
        ))

    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        value = None

    if value is None or not value.is_finite():
        return Lenient(ZERO, ParseWarning(
            field=field, raw_value=raw, fallback="0",
            message=f"{field} não numérico ({raw!r}), assumido 0",
        ))

    return Lenient(value)


def _to_datetime(raw: str) -> Optional[datetime]:
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def lenient_datetime(raw: Optional[str], field: str, now: Optional[datetime] = None) -> Lenient[datetime]:
    """ISO 8601 (dhEmi) ou data simples (dEmi); inválido vira 'agora' com aviso."""
    parsed = _to_datetime(raw) if raw else None
    if parsed is not None:
        return Lenient(parsed)

    fallback = now or datetime.now()
    reason = "ausente" if not raw else f"inválida ({raw!r})"
    return Lenient(fallback, ParseWarning(
        field=field, raw_value=raw, fallback=fallback.isoformat(),
        message=f"Data {field} {reason}, assumida data atual",
    ))


class _Extraction:
    """Acumula os avisos de uma única passada de extração."""

    def __init__(self) -> None:
        self.warnings: List[ParseWarning] = []

    def warn(self, warning: ParseWarning) -> None:
        logger.warning("NF-e fallback: %s", warning.message)
        self.warnings.append(warning)

    def take(self, result: Lenient[T]) -> T:
        if result.warning is not None:
            self.warn(result.warning)
        return result.value

    def required_text(self, node: XmlNode, field: str, tag: str) -> str:
        value = get_field(node, tag)
        if value is None:
            self.warn(ParseWarning(
                field=field, raw_value=None, fallback="",
                message=f"{field} ausente, mantido vazio",
            ))
            return ""
        return value


# EXTRAÇÃO

def extract_access_key(inf_nfe: XmlNode, protocol: Optional[XmlNode] = None) -> str:
    """
    Chave de acesso: atributo Id do infNFe sem o prefixo 'NFe';
    fallback para chNFe explícito (no infNFe ou no protocolo).
    A chave não pode ser sintetizada: sem ela o documento é rejeitado.
    """
    key = ""
    raw_id = get_field(inf_nfe, "id")
    if raw_id:
        if raw_id[:len(ACCESS_KEY_PREFIX)].lower() == ACCESS_KEY_PREFIX.lower():
            raw_id = raw_id[len(ACCESS_KEY_PREFIX):]
        key = raw_id.strip()

    if not key:
        key = (get_field(inf_nfe, "chnfe") or get_field(protocol, "chnfe") or "").strip()

    if not key:
        raise MissingFieldError("accessKey")

    return key


def _extract_invoice(ctx: _Extraction, inf_nfe: XmlNode, match: RootMatch) -> InvoiceRecord:
    ide = get_node(inf_nfe, "ide")
    if ide is None:
        raise MissingFieldError("ide")

    protocol = get_path(match.envelope, "protnfe", "infprot")

    # dhEmi (leiaute 3.10+) antes de dEmi (2.00); ordem importa para dados históricos
    issue_date = ctx.take(lenient_datetime(first_field(ide, "dhemi", "demi"), "ide.dhEmi"))

    due_raw = get_field(ide, "dtvenc") or get_field(get_path(inf_nfe, "cobr", "dup"), "dvenc")
    due_date = ctx.take(lenient_datetime(due_raw, "ide.dtVenc")) if due_raw else None

    protocol_raw = get_field(protocol, "dhrecbto")
    protocol_date = ctx.take(lenient_datetime(protocol_raw, "infProt.dhRecbto")) if protocol_raw else None

    operation = OperationType.OUTBOUND if get_field(ide, "tpnf") == OUTBOUND_CODE else OperationType.INBOUND

    return InvoiceRecord(
        number=ctx.required_text(ide, "ide.nNF", "nnf"),
        series=get_field(ide, "serie") or "",
        model=get_field(ide, "mod"),
        issue_date=issue_date,
        due_date=due_date,
        operation_type=operation,
        operation_nature=get_field(ide, "natop") or "",
        access_key=extract_access_key(inf_nfe, protocol),
        protocol_number=get_field(protocol, "nprot"),
        protocol_date=protocol_date,
        notes=clean_text(get_field(get_node(inf_nfe, "infadic"), "infcpl")),
    )


def _extract_party(ctx: _Extraction, inf_nfe: XmlNode, role: str) -> PartyRecord:
    block_tag, address_tag = PARTY_LAYOUT[role]

    block = get_node(inf_nfe, block_tag)
    if block is None:
        raise MissingFieldError(block_tag, role)

    other_tags = [tag for tag in ADDRESS_TAGS if tag != address_tag]
    address_node = first_node(block, address_tag, *other_tags)
    if address_node is None:
        raise MissingFieldError(f"{block_tag}.{address_tag}", role)

    address_values = {
        attr: ctx.required_text(address_node, f"{block_tag}.{address_tag}.{tag}", tag)
        for attr, tag in ADDRESS_LAYOUT
    }

    trade_name = get_field(block, "xfant")

    return PartyRecord(
        tax_id_cnpj=get_field(block, "cnpj"),
        tax_id_cpf=get_field(block, "cpf"),
        legal_name=get_field(block, "xnome") or trade_name or "",
        trade_name=trade_name,
        address=AddressRecord(complement=get_field(address_node, "xcpl"), **address_values),
        email=get_field(block, "email"),
        # fone fica dentro do endereço no leiaute oficial, mas alguns ERPs o põem no bloco
        phone=get_field(block, "fone") or get_field(address_node, "fone"),
    )


def _extract_item(ctx: _Extraction, det: XmlNode, index: int) -> LineItemRecord:
    label = f"det[{index}]"

    prod = get_node(det, "prod")
    if prod is None:
        raise MissingFieldError(f"{label}.prod")

    quantity = ctx.take(lenient_decimal(get_field(prod, "qcom"), f"{label}.prod.qCom"))
    if quantity < 0:
        ctx.warn(ParseWarning(
            field=f"{label}.prod.qCom", raw_value=str(quantity), fallback="0",
            message=f"{label}.prod.qCom negativo ({quantity}), assumido 0",
        ))
        quantity = ZERO

    # vItem (total com tributos) tem prioridade sobre vProd; vItem ilegível cai para vProd
    total = None
    item_total_raw = get_field(det, "vitem") or get_field(prod, "vitem")
    if item_total_raw is not None:
        total = lenient_decimal(item_total_raw, f"{label}.vItem")
        if total.warning is not None:
            ctx.warn(total.warning)
            total = None
    if total is None:
        total = lenient_decimal(get_field(prod, "vprod"), f"{label}.prod.vProd")

    return LineItemRecord(
        external_code=get_field(prod, "cprod") or "",
        description=clean_text(get_field(prod, "xprod")) or "",
        quantity=quantity,
        unit=get_field(prod, "ucom") or "",
        unit_price=ctx.take(lenient_decimal(get_field(prod, "vuncom"), f"{label}.prod.vUnCom")),
        total_value=ctx.take(total),
        ncm_code=get_field(prod, "ncm"),
        cfop_code=get_field(prod, "cfop"),
        note=clean_text(get_field(det, "infadprod")),
    )


def extract_items(
    det_blocks: Union[None, XmlNode, Sequence[XmlNode]],
    warnings: Optional[List[ParseWarning]] = None,
) -> List[LineItemRecord]:
    """
    Itens na ordem do documento. Um <det> isolado e uma lista com um único
    <det> produzem exatamente o mesmo resultado.
    """
    ctx = _Extraction()
    items = [_extract_item(ctx, det, index) for index, det in enumerate(as_list(det_blocks), start=1)]
    if warnings is not None:
        warnings.extend(ctx.warnings)
    return items


# PONTOS DE ENTRADA

def parse_nfe_xml_with_warnings(xml_text: str) -> ParseOutcome:
    """
    Parse completo, devolvendo o documento e os fallbacks aplicados.

    Raises:
        ParseError: markup mal formado
        MalformedDocumentError: nenhum envelope de NF-e reconhecido
        MissingFieldError: infNFe, ide, emit/dest, endereço, prod ou chave ausentes
    """
    tree = build_tree(xml_text if xml_text is not None else "")
    match = find_nfe_root(tree)

    inf_nfe = get_node(match.nfe, "infnfe")
    if inf_nfe is None:
        raise MissingFieldError("infNFe")

    ctx = _Extraction()
    invoice = _extract_invoice(ctx, inf_nfe, match)
    emitter = _extract_party(ctx, inf_nfe, "emitter")
    recipient = _extract_party(ctx, inf_nfe, "recipient")
    items = extract_items(get_nodes(inf_nfe, "det"), ctx.warnings)

    document = ParsedInvoiceDocument(
        invoice=invoice,
        emitter=emitter,
        recipient=recipient,
        items=tuple(items),
    )

    logger.info(
        "NF-e %s parsed (shape=%s, items=%d, warnings=%d)",
        invoice.number, match.shape, len(items), len(ctx.warnings),
    )
    return ParseOutcome(document=document, warnings=ctx.warnings)


def parse_nfe_xml(xml_text: str) -> ParsedInvoiceDocument:
    return parse_nfe_xml_with_warnings(xml_text).document


def validate_nfe_xml(xml_text: Optional[str]) -> PrecheckResult:
    """
    Pré-checagem textual, sem parse. Nunca levanta exceção: todo problema
    vira uma mensagem em errors.
    """
    errors: List[str] = []

    try:
        if not xml_text or not xml_text.strip():
            errors.append("XML vazio")
            return PrecheckResult(is_valid=False, errors=errors)

        if not any(marker in xml_text for marker in PRECHECK_MARKERS):
            errors.append("XML não parece ser uma NF-e válida")

        for section in PRECHECK_SECTIONS:
            if section not in xml_text:
                errors.append(f"Elemento obrigatório não encontrado: {section}")

    except Exception as e:
        errors.append(f"Erro na validação: {e}")

    return PrecheckResult(is_valid=not errors, errors=errors)


def summarize_nfe_xml(xml_text: str) -> InvoiceSummary:
    document = parse_nfe_xml(xml_text)

    return InvoiceSummary(
        number=document.invoice.number,
        series=document.invoice.series,
        issue_date_display=document.invoice.issue_date.strftime("%d/%m/%Y"),
        recipient_name=document.recipient.legal_name,
        recipient_tax_id=document.recipient.tax_id,
        item_count=len(document.items),
        total_value=sum((item.total_value for item in document.items), ZERO),
    )
