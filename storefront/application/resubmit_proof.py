import logging
from pydantic import BaseModel

from storefront.application.order_transition import OrderTransitionUseCase
from storefront.domain import lifecycle
from storefront.domain.exceptions import OrderNotFoundError
from storefront.domain.models import Actor, Order


logger = logging.getLogger(__name__)


class ResubmitProofDTO(BaseModel):
    payment_proof_url: str


class ResubmitPaymentProofUseCase(OrderTransitionUseCase):
    """Покупатель загружает новый скриншот после отклонения оплаты"""

    async def __call__(self, actor: Actor, order_id: str, dto: ResubmitProofDTO) -> Order:
        logger.info(f"Повторная загрузка скриншота для заказа {order_id} пользователем {actor.id}")

        def apply(current: Order) -> Order:
            # Чужой заказ неотличим от несуществующего
            if current.user_id != actor.id:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            return lifecycle.resubmit_payment_proof(current, dto.payment_proof_url, self._clock())

        _, order = await self._transition(order_id, apply)
        await self._dispatcher.payment_proof_uploaded(order, actor.full_name)
        return order
