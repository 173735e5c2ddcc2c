"""Notification Dispatcher.

Пишет уведомления пользователю или всем администраторам. Доставка best-effort:
ошибка логируется и не влияет на уже закоммиченное состояние заказа.
"""

import logging
import uuid
from typing import Optional, List

from storefront.application.interfaces import Clock, IdentityService, utc_now
from storefront.domain.exceptions import (
    IdentityServiceError, NotificationDeliveryError, PersistenceError
)
from storefront.domain.models import Notification, NotificationType, Order, OrderStatus, PaymentMethod, Product


logger = logging.getLogger(__name__)


STATUS_MESSAGES: dict[OrderStatus, tuple[str, str]] = {
    OrderStatus.PROCESSING: ("Order Status Updated", "Your order is being processed."),
    OrderStatus.OUT_FOR_DELIVERY: ("Out for Delivery", "Your order is out for delivery!"),
    OrderStatus.DELIVERED: (
        "Order Delivered", "Your order has been delivered. Thank you for shopping with us!"
    ),
    OrderStatus.CANCELLED: ("Order Cancelled", "Your order has been cancelled."),
}


def order_payload(order: Order, **extra) -> dict:
    data = {
        "order_id": order.id,
        "order_display_id": order.display_code,
        "status": order.status.value,
        "payment_status": order.payment_status.value,
        "total": str(order.total),
    }
    data.update(extra)
    return data


class NotificationDispatcher:
    def __init__(self, unit_of_work, identity_service: IdentityService, clock: Clock = utc_now):
        self._uow = unit_of_work
        self._identity = identity_service
        self._clock = clock

    async def deliver(
        self,
        user_ids: List[str],
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict] = None,
    ) -> List[Notification]:
        """Сохраняет уведомления одной транзакцией. Ошибки -> NotificationDeliveryError"""
        now = self._clock()
        notifications = [
            Notification(
                id=str(uuid.uuid4()),
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                data=data or {},
                read=False,
                created_at=now,
            )
            for user_id in user_ids
        ]
        if not notifications:
            return []
        try:
            async with self._uow() as uow:
                for notification in notifications:
                    await uow.notifications.create(notification)
                    await uow.outbox.create(
                        event_type="notification.created",
                        event_data={
                            "notification_id": notification.id,
                            "user_id": notification.user_id,
                            "type": notification.type.value,
                            "title": notification.title,
                        },
                        aggregate_id=notification.user_id,
                    )
                await uow.commit()
        except PersistenceError as e:
            raise NotificationDeliveryError(f"Не удалось сохранить уведомление '{title}': {e}") from e
        return notifications

    async def notify_user(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[Notification]:
        try:
            notifications = await self.deliver([user_id], type, title, message, data)
        except NotificationDeliveryError as e:
            logger.error(f"Не отправлено уведомление '{title}' для {user_id}: {e}")
            return None
        logger.info(f"Отправлено уведомление '{title}' для {user_id}")
        return notifications[0]

    async def notify_admins(
        self,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict] = None,
    ) -> List[Notification]:
        try:
            admin_ids = await self._identity.list_admin_ids()
            notifications = await self.deliver(admin_ids, type, title, message, data)
        except (IdentityServiceError, NotificationDeliveryError) as e:
            logger.error(f"Не отправлено уведомление '{title}' администраторам: {e}")
            return []
        logger.info(f"Отправлено уведомление '{title}' администраторам ({len(notifications)})")
        return notifications

    # Уведомления жизненного цикла заказа

    async def order_placed(self, order: Order, customer_name: Optional[str] = None) -> None:
        if order.payment_method == PaymentMethod.QR_CODE:
            hint = "Please complete the payment."
        else:
            hint = "Pay on delivery."
        await self.notify_user(
            order.user_id,
            NotificationType.ORDER_STATUS,
            "Order Placed Successfully",
            f"Your order {order.display_code} has been placed. {hint}",
            order_payload(order),
        )
        await self.notify_admins(
            NotificationType.NEW_ORDER,
            "New Order Received",
            f"Order {order.display_code} from {customer_name or 'a customer'} for {order.total}",
            order_payload(order, user_id=order.user_id),
        )

    async def payment_proof_uploaded(self, order: Order, customer_name: Optional[str] = None) -> None:
        await self.notify_admins(
            NotificationType.PAYMENT_VERIFIED,
            "Payment Proof Uploaded",
            f"Payment proof uploaded for order {order.display_code} by {customer_name or 'a customer'}",
            order_payload(order, user_id=order.user_id),
        )

    async def payment_verified(self, order: Order) -> None:
        await self.notify_user(
            order.user_id,
            NotificationType.PAYMENT_VERIFIED,
            "Payment Verified",
            "Your payment has been verified! We are preparing your order.",
            order_payload(order),
        )

    async def payment_rejected(self, order: Order) -> None:
        await self.notify_user(
            order.user_id,
            NotificationType.PAYMENT_REJECTED,
            "Payment Rejected",
            "Your payment proof was rejected. Please upload a valid proof.",
            order_payload(order),
        )

    async def status_changed(self, order: Order) -> None:
        title, message = STATUS_MESSAGES[order.status]
        extra = {}
        if order.status == OrderStatus.OUT_FOR_DELIVERY and order.delivery_date:
            message = f"{message} Expected delivery: {order.delivery_date.isoformat()}"
            extra["delivery_date"] = order.delivery_date.isoformat()
        await self.notify_user(
            order.user_id, NotificationType.ORDER_STATUS, title, message, order_payload(order, **extra)
        )

    # Уведомления каталога

    async def low_stock(self, product: Product, stock: int) -> None:
        await self.notify_admins(
            NotificationType.LOW_STOCK,
            "Low Stock Alert",
            f"{product.name} is running low. Only {stock} units left.",
            {"product_id": product.id, "product_name": product.name, "stock": stock},
        )

    async def stock_back(self, user_id: str, product: Product) -> None:
        await self.notify_user(
            user_id,
            NotificationType.STOCK_BACK,
            "Back in Stock",
            f"{product.name} is back in stock.",
            {"product_id": product.id, "product_name": product.name},
        )
