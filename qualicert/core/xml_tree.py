"""
Representação intermediária do XML fiscal.

Todas as etapas de extração consultam o documento por aqui: nomes de tag e
atributos são comparados sem diferenciar maiúsculas, o namespace é descartado
e atributos dividem o mesmo espaço de nomes dos elementos filhos
(``<infNFe Id="...">`` e ``<infNFe><Id>...</Id>`` respondem igual a
``get_field(node, "id")``).
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union
from xml.etree import ElementTree as ET

from .errors import ParseError

DOCUMENT_TAG = "#document"


@dataclass
class XmlNode:
    tag: str
    text: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List["XmlNode"] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"XmlNode(tag={self.tag!r}, children={len(self.children)})"


def local_name(raw: str) -> str:
    """'{http://www.portalfiscal.inf.br/nfe}NFe' -> 'nfe' ; 'ns2:NFe' -> 'nfe'"""
    if "}" in raw:
        raw = raw.rsplit("}", 1)[1]
    if ":" in raw:
        raw = raw.rsplit(":", 1)[1]
    return raw.lower()


def _convert(element: ET.Element) -> XmlNode:
    return XmlNode(
        tag=local_name(element.tag),
        text=(element.text or "").strip(),
        attrs={local_name(k): v.strip() for k, v in element.attrib.items()},
        children=[_convert(child) for child in element],
    )


def build_tree(xml_text: str) -> XmlNode:
    """
    Converte o texto XML em árvore de XmlNode.
    O nó retornado é um '#document' sintético cujo único filho é a raiz real,
    para que os detectores de formato enxerguem o elemento de topo.

    Raises:
        ParseError: markup mal formado (mensagem do expat preservada)
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ParseError(f"XML mal formado: {e}") from e

    return XmlNode(tag=DOCUMENT_TAG, children=[_convert(root)])


def get_nodes(node: Optional[XmlNode], name: str) -> List[XmlNode]:
    if node is None:
        return []
    wanted = name.lower()
    return [child for child in node.children if child.tag == wanted]


def get_node(node: Optional[XmlNode], name: str) -> Optional[XmlNode]:
    nodes = get_nodes(node, name)
    return nodes[0] if nodes else None


def get_path(node: Optional[XmlNode], *names: str) -> Optional[XmlNode]:
    current = node
    for name in names:
        current = get_node(current, name)
        if current is None:
            return None
    return current


def get_field(node: Optional[XmlNode], name: str) -> Optional[str]:
    """
    Valor textual de um campo, seja atributo ou elemento filho.
    Texto vazio é tratado como ausente.
    """
    if node is None:
        return None

    wanted = name.lower()
    value = node.attrs.get(wanted)
    if value:
        return value

    child = get_node(node, wanted)
    if child is not None and child.text:
        return child.text

    return None


def first_node(node: Optional[XmlNode], *names: str) -> Optional[XmlNode]:
    for name in names:
        child = get_node(node, name)
        if child is not None:
            return child
    return None


def first_field(node: Optional[XmlNode], *names: str) -> Optional[str]:
    """Primeiro campo presente na ordem dada (cadeias de fallback de layout)."""
    for name in names:
        value = get_field(node, name)
        if value is not None:
            return value
    return None


def as_list(value: Union[None, XmlNode, Sequence[XmlNode]]) -> List[XmlNode]:
    """Bloco único ou lista de blocos -> sempre lista."""
    if value is None:
        return []
    if isinstance(value, XmlNode):
        return [value]
    return list(value)
