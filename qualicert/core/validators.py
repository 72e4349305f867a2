import re
from datetime import date
from typing import Any, Dict, List, Optional

# Códigos IBGE de UF aceitos na chave de acesso
UF_CODES = {
    '11', '12', '13', '14', '15', '16', '17',        # Norte
    '21', '22', '23', '24', '25', '26', '27', '28', '29',  # Nordeste
    '31', '32', '33', '35',                          # Sudeste
    '41', '42', '43',                                # Sul
    '50', '51', '52', '53',                          # Centro-Oeste
}

NFE_MODELS = {'55': 'NF-e', '65': 'NFC-e'}
FIRST_NFE_YEAR = 2006  # NF-e nacional começou em 2006


def _digits(value: Optional[str]) -> str:
    return re.sub(r'\D', '', value or '')


def _mod11(base: str, weights: List[int]) -> int: ##     Dígito verificador módulo 11 (Receita / SEFAZ)
    resto = sum(int(d) * p for d, p in zip(base, weights)) % 11
    return 0 if resto < 2 else 11 - resto


def _invalido(erro: str, confianca: int = 100) -> Dict[str, Any]:
    return {"valido": False, "erro": erro, "confianca": confianca}


def cnpj_validator(cnpj: Optional[str]) -> Dict[str, Any]: ##     CNPJ com checksum
    cnpj_limpo = _digits(cnpj)

    if len(cnpj_limpo) != 14:
        return _invalido(f"CNPJ deve ter 14 dígitos (recebido {len(cnpj_limpo)})")

    if cnpj_limpo == cnpj_limpo[0] * 14:
        return _invalido("CNPJ com todos dígitos repetidos")

    dv1 = _mod11(cnpj_limpo[:12], [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    if int(cnpj_limpo[12]) != dv1:
        return _invalido(f"Dígito verificador 1 do CNPJ incorreto (esperado {dv1})", 99)

    dv2 = _mod11(cnpj_limpo[:13], [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    if int(cnpj_limpo[13]) != dv2:
        return _invalido(f"Dígito verificador 2 do CNPJ incorreto (esperado {dv2})", 99)

    return {
        "valido": True,
        "cnpj_limpo": cnpj_limpo,
        "cnpj_formatado": f"{cnpj_limpo[:2]}.{cnpj_limpo[2:5]}.{cnpj_limpo[5:8]}/{cnpj_limpo[8:12]}-{cnpj_limpo[12:]}",
        "tipo": "matriz" if cnpj_limpo[8:12] == "0001" else "filial",
        "confianca": 95  # Não consultou Receita Federal
    }


def cpf_validator(cpf: Optional[str]) -> Dict[str, Any]: ##     CPF (destinatário pessoa física)
    cpf_limpo = _digits(cpf)

    if len(cpf_limpo) != 11:
        return _invalido(f"CPF deve ter 11 dígitos (recebido {len(cpf_limpo)})")

    if cpf_limpo == cpf_limpo[0] * 11:
        return _invalido("CPF com todos dígitos repetidos")

    for posicao in (9, 10):
        pesos = list(range(posicao + 1, 1, -1))
        resto = sum(int(d) * p for d, p in zip(cpf_limpo[:posicao], pesos)) * 10 % 11
        dv = 0 if resto == 10 else resto
        if int(cpf_limpo[posicao]) != dv:
            return _invalido(f"Dígito verificador do CPF incorreto (esperado {dv})", 99)

    return {
        "valido": True,
        "cpf_limpo": cpf_limpo,
        "cpf_formatado": f"{cpf_limpo[:3]}.{cpf_limpo[3:6]}.{cpf_limpo[6:9]}-{cpf_limpo[9:]}",
        "confianca": 95
    }


def tax_id_validator(cnpj: Optional[str], cpf: Optional[str]) -> Dict[str, Any]:
    """CNPJ tem prioridade; sem nenhum dos dois o resultado é inválido."""
    if cnpj:
        return cnpj_validator(cnpj)
    if cpf:
        return cpf_validator(cpf)
    return _invalido("Nenhum CNPJ ou CPF informado")


# VALIDAÇÃO DE CHAVE NF-e

def nfe_key_validator(chave: Optional[str], hoje: Optional[date] = None) -> Dict[str, Any]:
    """
    Valida chave de acesso NF-e (44 dígitos).
    Estrutura: UF(2) + AAMM(4) + CNPJ(14) + Modelo(2) + Série(3) + Número(9)
               + tpEmis(1) + Código(8) + DV(1)
    """
    chave_limpa = _digits(chave)
    hoje = hoje or date.today()

    if len(chave_limpa) != 44:
        return _invalido(f"Chave deve ter 44 dígitos (recebido {len(chave_limpa)})")

    uf = chave_limpa[:2]
    ano = 2000 + int(chave_limpa[2:4])
    mes = int(chave_limpa[4:6])
    cnpj = chave_limpa[6:20]
    modelo = chave_limpa[20:22]

    if uf not in UF_CODES:
        return _invalido(f"Código UF inválido: {uf}")

    if not (1 <= mes <= 12):
        return _invalido(f"Mês inválido: {mes:02d}")

    if not (FIRST_NFE_YEAR <= ano <= hoje.year + 1):
        return _invalido(f"Ano implausível: {ano}", 95)

    if modelo not in NFE_MODELS:
        return _invalido(f"Modelo inválido: {modelo} (esperado 55=NF-e ou 65=NFC-e)", 95)

    validacao_cnpj = cnpj_validator(cnpj)
    if not validacao_cnpj["valido"]:
        return _invalido(f"CNPJ inválido na chave: {validacao_cnpj['erro']}", 99)

    # pesos 2..9 da direita para a esquerda sobre os 43 primeiros dígitos
    pesos = [2 + (i % 8) for i in range(43)][::-1]
    dv_calculado = _mod11(chave_limpa[:43], pesos)

    if int(chave_limpa[43]) != dv_calculado:
        return _invalido(
            f"Dígito verificador incorreto (esperado {dv_calculado}, recebido {chave_limpa[43]})", 99
        )

    return {
        "valido": True,
        "chave_limpa": chave_limpa,
        "chave_formatada": " ".join(chave_limpa[i:i + 4] for i in range(0, 44, 4)),
        "uf": uf,
        "ano_mes": f"{ano}-{mes:02d}",
        "cnpj_emitente": validacao_cnpj["cnpj_formatado"],
        "modelo": NFE_MODELS[modelo],
        "confianca": 90  # Não consultou a SEFAZ
    }
