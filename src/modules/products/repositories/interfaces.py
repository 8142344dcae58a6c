"""Catalog read port.

The order service only ever asks one question of the catalog:
"what is this product right now?".  It never caches or mutates
catalog state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from modules.products.dtos import ProductSnapshotDTO


class IProductRepository(ABC):
    """Read-only catalog contract used at order-creation time."""

    @abstractmethod
    def get_snapshot(self, product_id: str) -> Optional[ProductSnapshotDTO]:
        """Return the current price/name/image of an orderable product.

        Returns ``None`` for unknown, malformed or inactive product ids.
        """
