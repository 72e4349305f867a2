"""
Casamento dos dados da NF-e com o cadastro do tenant.

- resolve_client: emitente/destinatário do XML -> cliente existente,
  conflito (nomes parecidos, mesma raiz de CNPJ) ou sugestão de criação.
- match_item: item da nota -> produtos do catálogo, com score ponderado
  (código, nomes, unidade, NCM) e motivos legíveis.

Funções puras: o chamador carrega clientes/produtos do banco e decide o que
persistir.
"""
import logging
import re
from typing import Iterable, List, Optional

from rapidfuzz.distance import Levenshtein

from qualicert_config import settings

from ..schema.matching_models import (
    CatalogProduct,
    ClientConflict,
    ClientResolution,
    ExistingClient,
    MatchingStats,
    ProductMatch,
    ProductMatchResult,
    ProductSuggestions,
    SuggestedClient,
)
from ..schema.models import LineItemRecord, PartyRecord
from .text_normalizer import comparison_key, only_digits, search_terms

logger = logging.getLogger(__name__)

CNPJ_ROOT_LENGTH = 8
CNPJ_ROOT_SIMILARITY = 0.8
MAX_CLIENT_CONFLICTS = 5
MAX_PRODUCT_MATCHES = 10
GOOD_MATCH_SIMILARITY = 0.7
CREATE_NEW_BELOW = 0.5

UNIT_ALIASES = {
    'kg': 'kg', 'kgs': 'kg', 'quilograma': 'kg', 'quilogramas': 'kg',
    'l': 'l', 'lt': 'l', 'lts': 'l', 'litro': 'l', 'litros': 'l',
    'ml': 'ml', 'mililitro': 'ml', 'mililitros': 'ml',
    'g': 'g', 'gr': 'g', 'grs': 'g', 'grama': 'g', 'gramas': 'g',
    't': 't', 'ton': 't', 'tonelada': 't', 'toneladas': 't',
    'un': 'un', 'und': 'un', 'unidade': 'un', 'unidades': 'un',
    'pc': 'pc', 'pcs': 'pc', 'peça': 'pc', 'peças': 'pc',
}

# palavra-chave na descrição -> categoria sugerida (produtos químicos)
CATEGORY_KEYWORDS = [
    (('acido', 'acid'), 'Ácidos'),
    (('base', 'soda', 'hidroxido'), 'Bases'),
    (('sal', 'cloreto', 'sulfato'), 'Sais'),
    (('solvente', 'alcool', 'acetona'), 'Solventes'),
    (('oxido', 'peroxido'), 'Óxidos'),
    (('gas',), 'Gases'),
]
DEFAULT_CATEGORY = 'Outros Produtos Químicos'


def text_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Levenshtein normalizado (0..1) sobre as chaves de comparação."""
    key_a, key_b = comparison_key(a), comparison_key(b)
    if not key_a or not key_b:
        return 0.0
    return Levenshtein.normalized_similarity(key_a, key_b)


def name_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Igual a text_similarity, mas ignorando espaços (razões sociais)."""
    key_a = comparison_key(a).replace(' ', '')
    key_b = comparison_key(b).replace(' ', '')
    if not key_a and not key_b:
        return 1.0
    return Levenshtein.normalized_similarity(key_a, key_b)


# CLIENTES

def suggest_client(party: PartyRecord) -> SuggestedClient:
    cnpj = only_digits(party.tax_id_cnpj) or None
    cpf = only_digits(party.tax_id_cpf) or None

    return SuggestedClient(
        name=party.legal_name,
        cnpj=cnpj,
        cpf=cpf,
        tax_identifier=cnpj or cpf,
        tax_identifier_type="CNPJ" if cnpj else ("CPF" if cpf else None),
        address=party.address.one_line() or None,
        phone=party.phone,
        quality_email=party.email,
    )


def find_exact_client(party: PartyRecord, clients: Iterable[ExistingClient]) -> Optional[ExistingClient]:
    cnpj = only_digits(party.tax_id_cnpj)
    cpf = only_digits(party.tax_id_cpf)
    if not cnpj and not cpf:
        return None

    for client in clients:
        if cnpj:
            if only_digits(client.cnpj) == cnpj:
                return client
        elif only_digits(client.tax_identifier) == cpf:
            return client
    return None


def find_client_conflicts(
    party: PartyRecord,
    clients: Iterable[ExistingClient],
    threshold: Optional[float] = None,
) -> List[ClientConflict]:
    threshold = settings.CLIENT_NAME_SIMILARITY_THRESHOLD if threshold is None else threshold
    clients = list(clients)
    conflicts: List[ClientConflict] = []

    terms = search_terms(party.legal_name)
    if terms:
        for client in clients:
            client_key = comparison_key(client.name)
            if not any(term in client_key for term in terms):
                continue
            similarity = name_similarity(party.legal_name, client.name)
            if similarity > threshold:
                conflicts.append(ClientConflict(
                    id=client.id,
                    name=client.name,
                    cnpj=client.cnpj,
                    tax_identifier=client.tax_identifier,
                    similarity=round(similarity, 4),
                    reason=f"Nome similar ({round(similarity * 100)}% de similaridade)",
                ))

    cnpj = only_digits(party.tax_id_cnpj)
    if cnpj:
        root = cnpj[:CNPJ_ROOT_LENGTH]
        for client in clients:
            client_cnpj = only_digits(client.cnpj)
            if client_cnpj and client_cnpj != cnpj and client_cnpj.startswith(root):
                conflicts.append(ClientConflict(
                    id=client.id,
                    name=client.name,
                    cnpj=client.cnpj,
                    tax_identifier=client.tax_identifier,
                    similarity=CNPJ_ROOT_SIMILARITY,
                    reason="CNPJ com base similar (possível divergência de formatação)",
                ))

    unique: List[ClientConflict] = []
    seen = set()
    for conflict in conflicts:
        if conflict.id in seen:
            continue
        seen.add(conflict.id)
        unique.append(conflict)

    unique.sort(key=lambda c: c.similarity, reverse=True)
    return unique[:MAX_CLIENT_CONFLICTS]


def resolve_client(party: PartyRecord, clients: Iterable[ExistingClient]) -> ClientResolution:
    clients = list(clients)

    exact = find_exact_client(party, clients)
    if exact is not None:
        return ClientResolution(action="found", client=exact)

    conflicts = find_client_conflicts(party, clients)
    if conflicts:
        logger.info("Client '%s' has %d possible duplicates", party.legal_name, len(conflicts))
        return ClientResolution(action="conflict", conflicts=conflicts, suggested_data=suggest_client(party))

    return ClientResolution(action="create", suggested_data=suggest_client(party))


# PRODUTOS

def normalize_code(code: Optional[str]) -> str:
    return re.sub(r'[^\w]', '', code or '').lower()


def normalize_unit(unit: Optional[str]) -> str:
    key = (unit or '').strip().lower()
    return UNIT_ALIASES.get(key, key)


def suggest_category(description: str) -> str:
    words = set(comparison_key(description).split(' '))
    for keywords, category in CATEGORY_KEYWORDS:
        if words.intersection(keywords):
            return category
    return DEFAULT_CATEGORY


def clean_product_name(name: str) -> str:
    name = re.sub(r'\b\d+\s*(kg|l|ml|g|ton|t)\b', '', name, flags=re.IGNORECASE)
    name = re.sub(r'\b\d+\s*%', '', name)
    return re.sub(r'\s+', ' ', name).strip()


def score_product(item: LineItemRecord, product: CatalogProduct) -> ProductMatch:
    """
    Pesos: código=40 (código interno 35), nome técnico=30, nome comercial=20,
    nome base=15, unidade=10, NCM=5. Similaridade = pontos / 120.
    """
    max_score = 40 + 30 + 20 + 15 + 10 + 5
    score = 0.0
    reasons: List[str] = []

    code = normalize_code(item.external_code)
    if code and product.sku and code == normalize_code(product.sku):
        score += 40
        reasons.append('Código/SKU idêntico')
    elif code and product.internal_code and code == normalize_code(product.internal_code):
        score += 35
        reasons.append('Código interno idêntico')

    technical = text_similarity(item.description, product.technical_name)
    score += technical * 30
    if technical > 0.8:
        reasons.append('Nome técnico muito similar')
    elif technical > 0.6:
        reasons.append('Nome técnico similar')

    if product.commercial_name:
        commercial = text_similarity(item.description, product.commercial_name)
        score += commercial * 20
        if commercial > 0.8:
            reasons.append('Nome comercial muito similar')
        elif commercial > 0.6:
            reasons.append('Nome comercial similar')

    score += text_similarity(item.description, product.base_technical_name) * 15

    if normalize_unit(item.unit) == normalize_unit(product.default_measure_unit):
        score += 10
        reasons.append('Unidade de medida idêntica')

    if item.ncm_code and product.ncm and item.ncm_code == product.ncm:
        score += 5
        reasons.append('NCM idêntico')

    similarity = round(score / max_score, 4)
    if similarity > 0.9:
        reasons.append('Alta similaridade geral')
    elif similarity > 0.7:
        reasons.append('Boa similaridade geral')
    elif similarity > 0.5:
        reasons.append('Similaridade moderada')

    return ProductMatch(product=product, similarity=similarity, match_reasons=reasons)


def match_item(item: LineItemRecord, catalog: Iterable[CatalogProduct]) -> ProductMatchResult:
    matches = [
        match for match in (score_product(item, product) for product in catalog)
        if match.similarity > settings.PRODUCT_MIN_SIMILARITY
    ]
    matches.sort(key=lambda m: m.similarity, reverse=True)

    best = matches[0] if matches else None
    suggestions = ProductSuggestions()
    if best is None or best.similarity < CREATE_NEW_BELOW:
        suggestions = ProductSuggestions(
            create_new=True,
            suggested_category=suggest_category(item.description),
            suggested_base_name=clean_product_name(item.description),
        )

    return ProductMatchResult(
        item=item,
        matches=matches[:MAX_PRODUCT_MATCHES],
        has_exact_match=best is not None and best.similarity >= settings.PRODUCT_EXACT_MATCH_THRESHOLD,
        best_match=best,
        suggestions=suggestions,
    )


def match_items(items: Iterable[LineItemRecord], catalog: Iterable[CatalogProduct]) -> List[ProductMatchResult]:
    catalog = list(catalog)
    return [match_item(item, catalog) for item in items]


def matching_stats(results: Iterable[ProductMatchResult]) -> MatchingStats:
    stats = MatchingStats()
    for result in results:
        stats.total_items += 1
        if result.has_exact_match:
            stats.exact_matches += 1
        elif result.best_match is not None and result.best_match.similarity > GOOD_MATCH_SIMILARITY:
            stats.good_matches += 1
        elif not result.matches:
            stats.no_matches += 1
        else:
            stats.needs_review += 1
    return stats
