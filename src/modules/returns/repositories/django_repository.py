"""Django ORM implementation of the Return repository."""

from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.returns.models import Return
from modules.returns.repositories.interfaces import IReturnRepository

logger = structlog.get_logger(__name__)


class ReturnDjangoRepository(IReturnRepository):
    def get_by_id(self, id: str) -> Optional[Return]:
        try:
            return Return.objects.select_related("order").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Return]:
        try:
            return (
                Return.objects.select_for_update()
                .select_related("order")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: Return) -> Return:
        entity.save()
        logger.info("return.saved", return_id=str(entity.id), status=entity.status)
        return entity

    def create(self, order_id: UUID, owner_id: Any, reason: str) -> Return:
        return_request = Return.objects.create(
            order_id=order_id, owner_id=owner_id, reason=reason
        )
        logger.info(
            "return.created",
            return_id=str(return_request.id),
            order_id=str(order_id),
        )
        return return_request

    def list_for_order(self, order_id: UUID) -> List[Return]:
        return list(Return.objects.filter(order_id=order_id).order_by("-created_at"))

    def all(self) -> QuerySet:
        return Return.objects.select_related("order").order_by("-created_at", "-id")
