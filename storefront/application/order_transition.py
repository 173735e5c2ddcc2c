import logging
from typing import Callable

from storefront.application.interfaces import Clock, utc_now
from storefront.application.notifications import NotificationDispatcher, order_payload
from storefront.domain.exceptions import ConflictError, OrderNotFoundError
from storefront.domain.models import Order


logger = logging.getLogger(__name__)


class OrderTransitionUseCase:
    """Общая часть всех переходов: чтение -> проверка -> запись (CAS по версии) -> уведомление.

    Уведомление отправляется только после успешного коммита.
    """

    def __init__(self, unit_of_work, dispatcher: NotificationDispatcher, clock: Clock = utc_now):
        self._uow = unit_of_work
        self._dispatcher = dispatcher
        self._clock = clock

    async def _transition(self, order_id: str, apply: Callable[[Order], Order]) -> tuple[Order, Order]:
        async with self._uow() as uow:
            current = await uow.orders.get_by_id(order_id)
            if not current:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")

            updated = apply(current).model_copy(update={"version": current.version + 1})
            if not await uow.orders.update_state(updated, expected_version=current.version):
                raise ConflictError(f"Заказ {order_id} был изменен, повторите действие")

            await uow.outbox.create(
                event_type="order.status_changed",
                event_data=order_payload(updated, previous_status=current.status.value),
                aggregate_id=updated.id,
            )
            await uow.commit()

        logger.info(
            f"Заказ {updated.display_code}: {current.status.value}/{current.payment_status.value} -> "
            f"{updated.status.value}/{updated.payment_status.value}"
        )
        return current, updated
