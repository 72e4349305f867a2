"""
Detecção do envelope da NF-e.

Governo e ERPs embrulham o mesmo conteúdo em envelopes diferentes. Cada
formato conhecido é um ShapeMatcher (nome + extrator); os extratores são
testados em ordem fixa de prioridade e o primeiro que reconhece o documento
vence. Para suportar um novo layout basta acrescentar um matcher à lista.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import MalformedDocumentError
from .xml_tree import XmlNode, get_node

NFE_MARKER = "nfe"


@dataclass(frozen=True)
class RootMatch:
    shape: str
    nfe: XmlNode                       # elemento que contém o infNFe
    envelope: Optional[XmlNode] = None  # nfeProc (quando houver), fonte do protocolo


@dataclass(frozen=True)
class ShapeMatcher:
    name: str
    extract: Callable[[XmlNode], Optional[RootMatch]]


def _processed(document: XmlNode) -> Optional[RootMatch]:
    proc = get_node(document, "nfeproc")
    nfe = get_node(proc, "nfe")
    if nfe is None:
        return None
    return RootMatch(shape="processed", nfe=nfe, envelope=proc)


def _bare(document: XmlNode) -> Optional[RootMatch]:
    nfe = get_node(document, "nfe")
    if nfe is None:
        return None
    return RootMatch(shape="bare", nfe=nfe)


def _marker(document: XmlNode) -> Optional[RootMatch]:
    for candidate in document.children:
        if NFE_MARKER not in candidate.tag:
            continue

        nested = get_node(candidate, "nfe")
        if nested is not None:
            return RootMatch(shape="marker", nfe=nested, envelope=candidate)

        # O próprio elemento já é o container do infNFe
        if get_node(candidate, "infnfe") is not None:
            return RootMatch(shape="marker", nfe=candidate)

    return None


SHAPE_MATCHERS: List[ShapeMatcher] = [
    ShapeMatcher("processed", _processed),
    ShapeMatcher("bare", _bare),
    ShapeMatcher("marker", _marker),
]


def find_nfe_root(document: XmlNode, matchers: Optional[List[ShapeMatcher]] = None) -> RootMatch:
    for matcher in matchers or SHAPE_MATCHERS:
        match = matcher.extract(document)
        if match is not None:
            return match

    root_tag = document.children[0].tag if document.children else "?"
    raise MalformedDocumentError(
        f"Not a recognized NF-e invoice format (root element '{root_tag}')"
    )
