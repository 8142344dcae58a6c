"""Catalog snapshot DTO.

The only contract the order service has with the catalog: what a
product costs and how it should be displayed *right now*.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.products.models import Product


class ProductSnapshotDTO(BaseModel):
    """Immutable view of a product at order-creation time."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    price: Decimal
    image_url: Optional[str] = None

    @classmethod
    def from_entity(cls, product: Product) -> ProductSnapshotDTO:
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            image_url=product.image_url or None,
        )
