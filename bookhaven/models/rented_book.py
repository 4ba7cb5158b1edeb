from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bookhaven.models.order import Order


class RentedBook(SQLModel, table=True):
    __tablename__ = "rented_book"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    # frozen copy of the catalog item at order time
    book_id: str
    title: str
    author: str
    cover_image: str
    price: float
    rental_days: int
    total_price: float

    order: Optional["Order"] = Relationship(back_populates="books")
