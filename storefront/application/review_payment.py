import logging

from storefront.application.access import require_admin
from storefront.application.order_transition import OrderTransitionUseCase
from storefront.domain import lifecycle
from storefront.domain.models import Actor, Order


logger = logging.getLogger(__name__)


class VerifyPaymentUseCase(OrderTransitionUseCase):
    async def __call__(self, actor: Actor, order_id: str) -> Order:
        require_admin(actor)
        logger.info(f"Подтверждение оплаты заказа {order_id} администратором {actor.id}")

        _, order = await self._transition(
            order_id, lambda current: lifecycle.verify_payment(current, self._clock())
        )
        await self._dispatcher.payment_verified(order)
        return order


class RejectPaymentUseCase(OrderTransitionUseCase):
    async def __call__(self, actor: Actor, order_id: str) -> Order:
        require_admin(actor)
        logger.info(f"Отклонение оплаты заказа {order_id} администратором {actor.id}")

        _, order = await self._transition(
            order_id, lambda current: lifecycle.reject_payment(current, self._clock())
        )
        await self._dispatcher.payment_rejected(order)
        return order
