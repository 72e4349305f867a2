"""
Casamento emitente/destinatário -> cliente e item -> produto do catálogo.
"""
from decimal import Decimal

import pytest

from qualicert.core.matching import (
    clean_product_name,
    find_client_conflicts,
    match_item,
    match_items,
    matching_stats,
    name_similarity,
    normalize_code,
    normalize_unit,
    resolve_client,
    score_product,
    suggest_category,
    text_similarity,
)
from qualicert.schema.matching_models import (
    CatalogProduct,
    ExistingClient,
    ProductMatch,
    ProductMatchResult,
)
from qualicert.schema.models import AddressRecord, LineItemRecord, PartyRecord

from nfe_samples import RECIPIENT_CNPJ, RECIPIENT_CPF


@pytest.fixture
def party():
    return PartyRecord(
        tax_id_cnpj=RECIPIENT_CNPJ,
        legal_name="BETA COSMETICOS S.A.",
        address=AddressRecord(street="AVENIDA BRASIL", number="2500", city="SAO PAULO", state="SP"),
        email="qualidade@betacosmeticos.com.br",
        phone="1144445555",
    )


@pytest.fixture
def item():
    return LineItemRecord(
        external_code="ACX-01",
        description="ACIDO CITRICO ANIDRO",
        quantity=Decimal("1000"),
        unit="KG",
        ncm_code="29181400",
    )


def produto(id=1, **campos):
    dados = {
        "id": id,
        "base_product_id": 10,
        "technical_name": "Ácido Cítrico Anidro",
        "commercial_name": "Acido Citrico Anidro",
        "base_technical_name": "Acido Citrico Anidro",
        "default_measure_unit": "kg",
        "category": "Ácidos",
        "subcategory": "Orgânicos",
        "sku": "ACX-01",
        "ncm": "29181400",
    }
    dados.update(campos)
    return CatalogProduct(**dados)


# SIMILARIDADE

def test_similarity_helpers():
    assert text_similarity("Ácido Cítrico", "acido citrico") == 1.0
    assert text_similarity(None, "acido") == 0.0
    assert name_similarity("Beta Ltda", "BETA LTDA.") == 1.0
    assert name_similarity("", "") == 1.0
    assert 0.0 < name_similarity("Beta Cosmeticos", "Beta Alimentos") < 1.0


# CLIENTES

def test_resolve_client_found_by_cnpj(party):
    cliente = ExistingClient(id=7, name="Beta", cnpj="11.222.333/0001-81")
    resolution = resolve_client(party, [ExistingClient(id=1, name="Outro"), cliente])

    assert resolution.action == "found"
    assert resolution.client.id == 7


def test_resolve_client_found_by_cpf():
    pessoa = PartyRecord(tax_id_cpf=RECIPIENT_CPF, legal_name="Maria Souza", address=AddressRecord())
    cliente = ExistingClient(id=3, name="Maria", tax_identifier="529.982.247-25")

    assert resolve_client(pessoa, [cliente]).client.id == 3


def test_resolve_client_conflict_by_similar_name(party):
    cliente = ExistingClient(id=5, name="Beta Cosméticos SA", cnpj="99.888.777/0001-00")
    resolution = resolve_client(party, [cliente])

    assert resolution.action == "conflict"
    assert resolution.conflicts[0].id == 5
    assert resolution.conflicts[0].similarity == 1.0
    assert resolution.suggested_data.cnpj == RECIPIENT_CNPJ


def test_conflict_by_cnpj_root(party):
    cliente = ExistingClient(id=8, name="Filial Qualquer", cnpj="11.222.333/0002-62")
    conflicts = find_client_conflicts(party, [cliente])

    assert len(conflicts) == 1
    assert conflicts[0].similarity == 0.8
    assert "CNPJ" in conflicts[0].reason


def test_conflicts_are_unique_sorted_and_capped(party):
    clientes = [ExistingClient(id=i, name="Beta Cosmeticos SA") for i in range(1, 8)]
    clientes.append(ExistingClient(id=1, name="Beta Cosmeticos SA", cnpj="11.222.333/0002-62"))

    conflicts = find_client_conflicts(party, clientes)

    assert len(conflicts) == 5
    assert len({c.id for c in conflicts}) == 5


def test_conflict_threshold(party):
    cliente = ExistingClient(id=2, name="Beta Alimentos")

    assert find_client_conflicts(party, [cliente], threshold=0.0)
    assert find_client_conflicts(party, [cliente], threshold=0.99) == []


def test_resolve_client_create(party):
    resolution = resolve_client(party, [ExistingClient(id=1, name="Gama Alimentos")])

    assert resolution.action == "create"
    sugestao = resolution.suggested_data
    assert sugestao.name == "BETA COSMETICOS S.A."
    assert sugestao.tax_identifier == RECIPIENT_CNPJ
    assert sugestao.tax_identifier_type == "CNPJ"
    assert sugestao.address == "AVENIDA BRASIL, 2500, SAO PAULO - SP"
    assert sugestao.quality_email == "qualidade@betacosmeticos.com.br"
    assert sugestao.is_national is True


# PRODUTOS

def test_exact_product_scores_full(item):
    match = score_product(item, produto())

    assert match.similarity == 1.0
    assert "Código/SKU idêntico" in match.match_reasons
    assert "Unidade de medida idêntica" in match.match_reasons
    assert "NCM idêntico" in match.match_reasons
    assert "Alta similaridade geral" in match.match_reasons


def test_internal_code_match(item):
    match = score_product(item, produto(sku=None, internal_code="acx 01"))
    assert "Código interno idêntico" in match.match_reasons


def test_match_item_picks_best_product(item):
    catalogo = [
        produto(id=2, sku="SDC-50", technical_name="Soda Caustica", commercial_name=None,
                base_technical_name="Hidroxido de Sodio", default_measure_unit="L", ncm="28151200"),
        produto(id=1),
    ]
    result = match_item(item, catalogo)

    assert result.has_exact_match is True
    assert result.best_match.product.id == 1
    assert result.matches[0].product.id == 1
    assert result.suggestions.create_new is False


def test_match_item_without_catalog_suggests_new_product(item):
    result = match_item(item, [])

    assert result.matches == []
    assert result.best_match is None
    assert result.has_exact_match is False
    assert result.suggestions.create_new is True
    assert result.suggestions.suggested_category == "Ácidos"
    assert result.suggestions.suggested_base_name == "ACIDO CITRICO ANIDRO"


def test_match_items_keeps_order(item):
    outro = item.model_copy(update={"external_code": "X"})
    results = match_items([item, outro], [produto()])
    assert [r.item.external_code for r in results] == ["ACX-01", "X"]


@pytest.mark.parametrize(
    "descricao,categoria",
    [
        ("SODA CAUSTICA 50%", "Bases"),
        ("ALCOOL ETILICO 96", "Solventes"),
        ("CLORETO DE SODIO", "Sais"),
        ("EMBALAGEM PLASTICA", "Outros Produtos Químicos"),
    ],
)
def test_suggest_category(descricao, categoria):
    assert suggest_category(descricao) == categoria


def test_product_name_helpers():
    assert clean_product_name("ACIDO SULFURICO 98% 25 KG") == "ACIDO SULFURICO"
    assert normalize_code("ACX-01") == "acx01"
    assert normalize_unit("KGS") == "kg"
    assert normalize_unit("Litros") == "l"
    assert normalize_unit("CX") == "cx"


def test_matching_stats(item):
    def resultado(similaridade, exato=False):
        if similaridade is None:
            return ProductMatchResult(item=item)
        match = ProductMatch(product=produto(), similarity=similaridade)
        return ProductMatchResult(item=item, matches=[match], best_match=match, has_exact_match=exato)

    stats = matching_stats([
        resultado(0.95, exato=True),
        resultado(0.8),
        resultado(0.4),
        resultado(None),
    ])

    assert stats.total_items == 4
    assert stats.exact_matches == 1
    assert stats.good_matches == 1
    assert stats.needs_review == 1
    assert stats.no_matches == 1
