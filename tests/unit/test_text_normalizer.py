import pytest
from qualicert.core.text_normalizer import (
    clean_text,
    comparison_key,
    only_digits,
    search_terms,
    strip_accents,
)


def test_clean_text_removes_invisible_chars():
    texto = "Pedido 555\u200b  -\t lote\r\n\n\nA1 "
    assert clean_text(texto) == "Pedido 555 - lote\nA1"


@pytest.mark.parametrize("texto", [None, "", "   ", "\u200b"])
def test_clean_text_empty_becomes_none(texto):
    assert clean_text(texto) is None


@pytest.mark.parametrize(
    "valor,esperado",
    [
        ("04.252.011/0001-10", "04252011000110"),
        ("01000-000", "01000000"),
        (None, ""),
    ],
)
def test_only_digits(valor, esperado):
    assert only_digits(valor) == esperado


def test_strip_accents():
    assert strip_accents("Ácido Cítrico São Paulo") == "Acido Citrico Sao Paulo"


def test_comparison_key():
    assert comparison_key("  BETA Cosméticos S.A. ") == "beta cosmeticos s a"
    assert comparison_key(None) == ""


def test_search_terms_skip_company_suffixes():
    assert search_terms("Química Alfa Indústria e Comércio LTDA") == ["quimica", "alfa", "comercio"]
    assert search_terms("ABC Ltda") == ["abc"]
    assert search_terms("SA") == []
