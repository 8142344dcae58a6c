"""Return repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.returns.models import Return


class IReturnRepository(IRepository["Return"]):
    @abstractmethod
    def create(self, order_id: UUID, owner_id: Any, reason: str) -> Return:
        """Open a new return in ``requested``."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Return]:
        """Retrieve a return holding a row-level lock."""

    @abstractmethod
    def list_for_order(self, order_id: UUID) -> List[Return]:
        """Returns of an order, newest first."""

    @abstractmethod
    def all(self) -> QuerySet:
        """Every return, newest first (staff listing)."""
