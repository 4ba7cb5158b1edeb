from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class CatalogItem(BaseModel):
    """A book as the catalog supplies it. Read-only to the cart and checkout."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    authors: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None
    price: float = Field(..., description="Weekly rental rate in catalog units")
    availability: bool = True

    @property
    def author_line(self) -> str:
        return ", ".join(self.authors) if self.authors else "Unknown Author"
