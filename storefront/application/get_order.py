from typing import List

from storefront.application.access import require_admin
from storefront.application.interfaces import IdentityService
from storefront.domain.exceptions import OrderNotFoundError
from storefront.domain.models import Actor, Order, OrderDetails


class GetOrderUseCase:
    """Заказ покупателя. Чужой заказ -> OrderNotFoundError, чтобы не раскрывать его существование."""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, order_id: str) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order or order.user_id != actor.id:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            return order


class GetMyOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor) -> List[Order]:
        async with self._uow() as uow:
            return await uow.orders.find(user_id=actor.id)


class GetOrderDetailsUseCase:
    """Заказ с позициями и контактами покупателя для админки"""

    def __init__(self, unit_of_work, identity_service: IdentityService):
        self._uow = unit_of_work
        self._identity = identity_service

    async def __call__(self, actor: Actor, order_id: str) -> OrderDetails:
        require_admin(actor)
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")

        contacts = await self._identity.get_contacts([order.user_id])
        return OrderDetails(order=order, customer=contacts.get(order.user_id))
