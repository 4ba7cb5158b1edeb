from pydantic import BaseModel
from typing import List, Optional

from bookhaven.schemas.catalog_schemas import CatalogItem


class CartAddRequest(BaseModel):
    book: CatalogItem
    rental_days: Optional[int] = None


class CartUpdateRequest(BaseModel):
    rental_days: int


class CartLineOut(BaseModel):
    book_id: str
    title: str
    authors: List[str]
    thumbnail: Optional[str]
    price: float
    rental_days: int
    line_total: float
    display_total: str


class CartOut(BaseModel):
    items: List[CartLineOut]
    total_line_count: int
    total_amount: float
    display_total: str
    rental_tiers: List[int]
