import re
import unicodedata
from typing import List, Optional

CLEAN_REPLACEMENTS = [
    ('\xa0', ' '),
    ('\u200b', ''),
    ('\r\n', '\n'),
]

# Palavras que não distinguem uma razão social da outra
COMPANY_STOP_WORDS = {
    'ltda', 'sa', 'eireli', 'me', 'epp', 'sociedade', 'empresa',
    'comercial', 'industria', 'servicos',
}


def clean_text(text: Optional[str]) -> Optional[str]: ##     Texto livre do XML (infCpl, infAdProd): remove invisíveis e colapsa espaços
    if text is None:
        return None

    for pat, repl in CLEAN_REPLACEMENTS:
        text = text.replace(pat, repl)

    text = re.sub(r'[ \t\f\v]+', ' ', text)
    text = re.sub(r'\n{2,}', '\n', text)
    text = text.strip()

    return text or None


def only_digits(value: Optional[str]) -> str: ##     CNPJ/CPF/CEP formatados -> só dígitos
    return re.sub(r'\D', '', value or '')


def strip_accents(text: str) -> str:
    normalized = unicodedata.normalize('NFKD', text)
    return ''.join(c for c in normalized if not unicodedata.combining(c))


def comparison_key(text: Optional[str]) -> str: ##     Chave de comparação para similaridade (minúsculo, sem acento e pontuação)
    if not text:
        return ''
    text = strip_accents(text).lower()
    text = re.sub(r'[^\w\s]', ' ', text)
    return re.sub(r'\s+', ' ', text).strip()


def search_terms(name: Optional[str], limit: int = 3) -> List[str]:
    """Termos relevantes de uma razão social, sem stop words societárias."""
    terms = [
        word for word in comparison_key(name).split(' ')
        if len(word) > 2 and word not in COMPANY_STOP_WORDS
    ]
    return terms[:limit]
