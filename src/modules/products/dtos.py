"""Product read view for the order subsystem."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from modules.products.models import Product


class ProductForOrderDTO(BaseModel):
    """Immutable snapshot of the catalog fields an order line needs."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal = Field(ge=0)
    stock: int = Field(ge=0)
    image_urls: List[str] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, product: Product) -> ProductForOrderDTO:
        return cls(
            id=str(product.id),
            name=product.name,
            price=product.price,
            stock=product.stock,
            image_urls=[url for url in product.image_urls or [] if isinstance(url, str)],
        )
