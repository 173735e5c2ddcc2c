import logging
from datetime import date
from typing import Optional
from pydantic import BaseModel

from storefront.application.access import require_admin
from storefront.application.order_transition import OrderTransitionUseCase
from storefront.domain import lifecycle
from storefront.domain.models import Actor, Order, OrderStatus


logger = logging.getLogger(__name__)


class AdvanceStatusDTO(BaseModel):
    status: OrderStatus
    delivery_date: Optional[date] = None


class AdvanceStatusUseCase(OrderTransitionUseCase):
    """processing / out_for_delivery / delivered / cancelled: только администратор"""

    async def __call__(self, actor: Actor, order_id: str, dto: AdvanceStatusDTO) -> Order:
        require_admin(actor)
        logger.info(f"Смена статуса заказа {order_id} на {dto.status.value} администратором {actor.id}")

        _, order = await self._transition(
            order_id,
            lambda current: lifecycle.advance(current, dto.status, self._clock(), dto.delivery_date),
        )
        await self._dispatcher.status_changed(order)
        return order

    async def cancel(self, actor: Actor, order_id: str) -> Order:
        return await self(actor, order_id, AdvanceStatusDTO(status=OrderStatus.CANCELLED))
