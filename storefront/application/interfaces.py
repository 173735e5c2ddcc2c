from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional, List

from storefront.domain.models import (
    Actor, CustomerContact, Notification, Order, OrderStatus, PaymentMethod, PaymentStatus,
    Product, StoreSettings
)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        """Сохраняет заголовок заказа вместе со всеми позициями"""
        pass

    @abstractmethod
    async def update_state(self, order: Order, expected_version: int) -> bool:
        """Compare-and-swap по версии. False, если заказ изменился после чтения."""
        pass

    @abstractmethod
    async def find(
        self,
        user_id: Optional[str] = None,
        statuses: Optional[Iterable[OrderStatus]] = None,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
        payment_method: Optional[PaymentMethod] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Order]:
        pass

    @abstractmethod
    async def count_by_status(self) -> dict[OrderStatus, int]:
        pass

    @abstractmethod
    async def count(
        self,
        user_id: Optional[str] = None,
        statuses: Optional[Iterable[OrderStatus]] = None,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
        payment_method: Optional[PaymentMethod] = None,
        created_from: Optional[datetime] = None,
    ) -> int:
        pass

    @abstractmethod
    async def sum_total(
        self,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
        payment_method: Optional[PaymentMethod] = None,
        updated_from: Optional[datetime] = None,
    ) -> Decimal:
        pass


class NotificationRepository(ABC):
    @abstractmethod
    async def create(self, notification: Notification) -> None:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        pass

    @abstractmethod
    async def count_unread(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        pass

    @abstractmethod
    async def mark_all_as_read(self, user_id: str) -> int:
        pass


class OutboxRepository(ABC):
    @abstractmethod
    async def create(self, event_type: str, event_data: dict, aggregate_id: str) -> str:
        pass

    @abstractmethod
    async def get_pending(self, limit: int = 10) -> List[dict]:
        pass

    @abstractmethod
    async def mark_as_published(self, event_id: str) -> None:
        pass


class StoreSettingsRepository(ABC):
    @abstractmethod
    async def get(self) -> Optional[StoreSettings]:
        pass

    @abstractmethod
    async def save(self, store_settings: StoreSettings) -> None:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @property
    @abstractmethod
    def notifications(self) -> NotificationRepository:
        pass

    @property
    @abstractmethod
    def outbox(self) -> OutboxRepository:
        pass

    @property
    @abstractmethod
    def store_settings(self) -> StoreSettingsRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class CatalogService(ABC):
    @abstractmethod
    async def get_product(self, product_id: str) -> Optional[Product]:
        pass


class IdentityService(ABC):
    @abstractmethod
    async def get_actor(self, access_token: str) -> Optional[Actor]:
        pass

    @abstractmethod
    async def list_admin_ids(self) -> List[str]:
        pass

    @abstractmethod
    async def get_contacts(self, user_ids: List[str]) -> dict[str, CustomerContact]:
        pass


class ChangeFeedPublisher(ABC):
    @abstractmethod
    async def publish(self, event_type: str, payload: dict, key: str) -> bool:
        pass
