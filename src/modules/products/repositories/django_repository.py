"""Django ORM implementation of the catalog read port.

Error handling follows the Null Object pattern: missing products come
back as ``None`` and the order service decides how to report them.
"""

from __future__ import annotations

from typing import Optional

import structlog

from django.core.exceptions import ValidationError

from modules.products.dtos import ProductSnapshotDTO
from modules.products.models import Product, ProductStatus
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Catalog reader backed by the ``products`` table."""

    def get_snapshot(self, product_id: str) -> Optional[ProductSnapshotDTO]:
        try:
            product = Product.objects.filter(
                id=product_id, status=ProductStatus.ACTIVE
            ).first()
        except (ValueError, ValidationError):
            return None
        if product is None:
            logger.info("catalog.product_unavailable", product_id=str(product_id))
            return None
        return ProductSnapshotDTO.from_entity(product)
