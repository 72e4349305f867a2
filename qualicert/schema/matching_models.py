from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .models import LineItemRecord


class ExistingClient(BaseModel): ##     Cliente já cadastrado no tenant (fornecido pelo chamador)
    id: int
    name: str
    cnpj: Optional[str] = None
    tax_identifier: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    quality_email: Optional[str] = None


class ClientConflict(BaseModel):
    id: int
    name: str
    cnpj: Optional[str] = None
    tax_identifier: Optional[str] = None
    similarity: float = Field(ge=0.0, le=1.0)
    reason: str


class SuggestedClient(BaseModel): ##     Dados sugeridos para criar o cliente a partir do XML
    name: str
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    tax_identifier: Optional[str] = None
    tax_identifier_type: Optional[Literal["CNPJ", "CPF"]] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    quality_email: Optional[str] = None
    is_national: bool = True
    country: str = "Brasil"


class ClientResolution(BaseModel):
    action: Literal["found", "create", "conflict"]
    client: Optional[ExistingClient] = None
    conflicts: List[ClientConflict] = Field(default_factory=list)
    suggested_data: Optional[SuggestedClient] = None


class CatalogProduct(BaseModel): ##     Produto ativo do tenant, já com base/categoria resolvidas
    id: int
    base_product_id: int
    technical_name: str
    default_measure_unit: str
    category: str
    subcategory: str
    base_technical_name: str
    sku: Optional[str] = None
    commercial_name: Optional[str] = None
    internal_code: Optional[str] = None
    base_commercial_name: Optional[str] = None
    ncm: Optional[str] = None


class ProductMatch(BaseModel):
    product: CatalogProduct
    similarity: float = Field(ge=0.0, le=1.0)
    match_reasons: List[str] = Field(default_factory=list)


class ProductSuggestions(BaseModel):
    create_new: bool = False
    suggested_category: Optional[str] = None
    suggested_base_name: Optional[str] = None


class ProductMatchResult(BaseModel):
    item: LineItemRecord
    matches: List[ProductMatch] = Field(default_factory=list)
    has_exact_match: bool = False
    best_match: Optional[ProductMatch] = None
    suggestions: ProductSuggestions = Field(default_factory=ProductSuggestions)


class MatchingStats(BaseModel):
    total_items: int = 0
    exact_matches: int = 0
    good_matches: int = 0
    no_matches: int = 0
    needs_review: int = 0
