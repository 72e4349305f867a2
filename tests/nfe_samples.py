"""
Amostras de XML NF-e para os testes.

A chave de acesso e os CNPJs têm dígitos verificadores válidos, então as
checagens de qualidade passam no documento padrão.
"""

NFE_NS = "http://www.portalfiscal.inf.br/nfe"

ACCESS_KEY = "35240104252011000110550010000012341000012345"
EMITTER_CNPJ = "04252011000110"
RECIPIENT_CNPJ = "11222333000181"
RECIPIENT_CPF = "52998224725"

IDE = (
    "<ide><cUF>35</cUF><natOp>VENDA DE PRODUCAO DO ESTABELECIMENTO</natOp>"
    "<mod>55</mod><serie>1</serie><nNF>1234</nNF>"
    "<dhEmi>2024-01-15T10:30:00-03:00</dhEmi><tpNF>1</tpNF></ide>"
)

EMIT = (
    "<emit><CNPJ>{cnpj}</CNPJ><xNome>QUIMICA ALFA INDUSTRIA LTDA</xNome><xFant>ALFA QUIMICA</xFant>"
    "<enderEmit><xLgr>RUA DAS INDUSTRIAS</xLgr><nro>100</nro><xBairro>DISTRITO INDUSTRIAL</xBairro>"
    "<cMun>3509502</cMun><xMun>CAMPINAS</xMun><UF>SP</UF><CEP>13054000</CEP>"
    "<fone>1933334444</fone></enderEmit></emit>"
)

DEST_ADDRESS = (
    "<enderDest><xLgr>AVENIDA BRASIL</xLgr><nro>2500</nro><xCpl>GALPAO 3</xCpl>"
    "<xBairro>CENTRO</xBairro><cMun>3550308</cMun><xMun>SAO PAULO</xMun><UF>SP</UF>"
    "<CEP>01000000</CEP></enderDest>"
)

DEST = (
    "<dest>{tax_id}<xNome>BETA COSMETICOS S.A.</xNome>{address}"
    "<email>qualidade@betacosmeticos.com.br</email></dest>"
)

DET_ACIDO = (
    '<det nItem="1"><prod><cProd>ACX-01</cProd><xProd>ACIDO CITRICO ANIDRO</xProd>'
    "<NCM>29181400</NCM><CFOP>5102</CFOP><uCom>KG</uCom><qCom>{qty}</qCom>"
    "<vUnCom>12.5000</vUnCom><vProd>12500.00</vProd></prod>"
    "<infAdProd>Lote L2401-A</infAdProd></det>"
)

DET_SODA = (
    '<det nItem="2"><prod><cProd>SDC-50</cProd><xProd>SODA CAUSTICA 50%</xProd>'
    "<NCM>28151200</NCM><CFOP>5102</CFOP><uCom>L</uCom><qCom>200</qCom>"
    "<vUnCom>4.25</vUnCom><vProd>850.00</vProd></prod><vItem>901.00</vItem></det>"
)

INFADIC = "<infAdic><infCpl>Pedido 555  -  entrega parcial</infCpl></infAdic>"

PROTOCOL = (
    '<protNFe versao="4.00"><infProt><tpAmb>1</tpAmb><chNFe>{key}</chNFe>'
    "<dhRecbto>2024-01-15T10:35:12-03:00</dhRecbto><nProt>135240000123456</nProt>"
    "<cStat>100</cStat></infProt></protNFe>"
)


def det_acido(qty="1000.0000"):
    return DET_ACIDO.format(qty=qty)


def build_inf_nfe(
    key=ACCESS_KEY,
    ide=IDE,
    emit=None,
    dest=None,
    dets=None,
    id_attr=True,
    extra="",
):
    emit = EMIT.format(cnpj=EMITTER_CNPJ) if emit is None else emit
    dest = (
        DEST.format(tax_id=f"<CNPJ>{RECIPIENT_CNPJ}</CNPJ>", address=DEST_ADDRESS)
        if dest is None else dest
    )
    dets = det_acido() + DET_SODA if dets is None else dets
    id_part = f' Id="NFe{key}"' if id_attr else ""
    return f'<infNFe{id_part} versao="4.00">{ide}{emit}{dest}{dets}{INFADIC}{extra}</infNFe>'


def wrap(inf_nfe, envelope="processed", protocol=False, key=ACCESS_KEY):
    """Embrulha o infNFe num dos envelopes conhecidos."""
    prot = PROTOCOL.format(key=key) if protocol else ""
    header = '<?xml version="1.0" encoding="UTF-8"?>'

    if envelope == "processed":
        return (
            f'{header}<nfeProc xmlns="{NFE_NS}" versao="4.00">'
            f'<NFe xmlns="{NFE_NS}">{inf_nfe}</NFe>{prot}</nfeProc>'
        )
    if envelope == "bare":
        return f'{header}<NFe xmlns="{NFE_NS}">{inf_nfe}</NFe>'
    if envelope == "marker":
        return (
            f'{header}<ns2:LoteNFeEnvio xmlns:ns2="urn:erp:lote">'
            f"<NFe>{inf_nfe}</NFe></ns2:LoteNFeEnvio>"
        )
    if envelope == "marker_self":
        return f"{header}<DocumentoNFe>{inf_nfe}</DocumentoNFe>"
    raise ValueError(envelope)


def sample_nfe(envelope="processed", protocol=True, **inf_kwargs):
    return wrap(build_inf_nfe(**inf_kwargs), envelope=envelope, protocol=protocol)
