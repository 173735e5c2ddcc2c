import logging
import secrets
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from storefront.application.interfaces import CatalogService, Clock, utc_now
from storefront.application.notifications import NotificationDispatcher, order_payload
from storefront.application.store_settings import StoreSettingsService
from storefront.domain.exceptions import ValidationError
from storefront.domain.models import (
    Actor, Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
)


logger = logging.getLogger(__name__)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
MIN_ADDRESS_LENGTH = 10
MIN_PHONE_LENGTH = 10


class CartLineDTO(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)


class PlaceOrderDTO(BaseModel):
    items: list[CartLineDTO]
    address: str
    phone: str
    delivery_instructions: Optional[str] = None
    payment_method: PaymentMethod
    payment_proof_url: Optional[str] = None


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_display_code(now: datetime, prefix: str = "SBK") -> str:
    """SBK-<время создания в base36><6 случайных символов>"""
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{prefix}-{_base36(millis)}{suffix}"


class PlaceOrderUseCase:
    def __init__(
        self,
        unit_of_work,
        catalog_service: CatalogService,
        settings_service: StoreSettingsService,
        dispatcher: NotificationDispatcher,
        clock: Clock = utc_now,
        code_prefix: str = "SBK",
    ):
        self._uow = unit_of_work
        self._catalog = catalog_service
        self._settings = settings_service
        self._dispatcher = dispatcher
        self._clock = clock
        self._code_prefix = code_prefix

    async def __call__(self, actor: Actor, order_data: PlaceOrderDTO) -> Order:
        logger.info(f"Оформление заказа для пользователя {actor.id}, позиций: {len(order_data.items)}")

        # 1. Проверка входных данных до любых записей
        if not order_data.items:
            raise ValidationError("Корзина пуста")
        if len(order_data.address.strip()) < MIN_ADDRESS_LENGTH:
            raise ValidationError("Укажите полный адрес доставки")
        if len(order_data.phone.strip()) < MIN_PHONE_LENGTH:
            raise ValidationError("Укажите корректный номер телефона")
        if order_data.payment_method == PaymentMethod.QR_CODE and not order_data.payment_proof_url:
            raise ValidationError("Для оплаты по QR коду загрузите скриншот платежа")

        store_settings = await self._settings.get()
        if not store_settings.accepts(order_data.payment_method):
            raise ValidationError(f"Способ оплаты {order_data.payment_method.value} отключен")

        # 2. Снимок цен из каталога
        quantities: dict[str, int] = {}
        for line in order_data.items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        order_id = str(uuid.uuid4())
        items = []
        for product_id, quantity in quantities.items():
            product = await self._catalog.get_product(product_id)
            if not product:
                raise ValidationError(f"Товар {product_id} не найден")
            items.append(OrderItem(
                id=str(uuid.uuid4()),
                order_id=order_id,
                product_id=product.id,
                product_name=product.name,
                unit=product.unit,
                quantity=quantity,
                price=product.price,
                total=product.price * quantity,
            ))

        # 3. Расчет суммы
        subtotal = sum((item.total for item in items), Decimal("0"))
        delivery_fee = store_settings.delivery_fee

        # 4. Создание заказа: заголовок и позиции одной транзакцией
        if order_data.payment_method == PaymentMethod.CASH_ON_DELIVERY:
            status, payment_status = OrderStatus.PAYMENT_VERIFIED, PaymentStatus.VERIFIED
        else:
            status, payment_status = OrderStatus.PENDING_PAYMENT, PaymentStatus.PENDING

        proof_url = order_data.payment_proof_url
        if order_data.payment_method == PaymentMethod.CASH_ON_DELIVERY:
            proof_url = None

        now = self._clock()
        order = Order(
            id=order_id,
            display_code=generate_display_code(now, self._code_prefix),
            user_id=actor.id,
            status=status,
            payment_method=order_data.payment_method,
            payment_status=payment_status,
            payment_proof_url=proof_url,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=subtotal + delivery_fee,
            address=order_data.address.strip(),
            phone=order_data.phone.strip(),
            delivery_instructions=order_data.delivery_instructions or None,
            created_at=now,
            updated_at=now,
            version=1,
            items=items,
        )

        async with self._uow() as uow:
            await uow.orders.create(order)
            await uow.outbox.create(
                event_type="order.created",
                event_data=order_payload(order, user_id=order.user_id),
                aggregate_id=order.id,
            )
            await uow.commit()
        logger.info(f"Заказ создан: {order.display_code} ({order.id}), сумма {order.total}")

        # Уведомления после коммита
        await self._dispatcher.order_placed(order, actor.full_name)
        if order.payment_proof_url:
            await self._dispatcher.payment_proof_uploaded(order, actor.full_name)

        return order
