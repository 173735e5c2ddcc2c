"""In-memory реализации портов для тестов сценариев."""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from storefront.application.interfaces import (
    CatalogService, ChangeFeedPublisher, IdentityService, NotificationRepository, OrderRepository,
    OutboxRepository, StoreSettingsRepository
)
from storefront.domain.exceptions import IdentityServiceError, PersistenceError


CUSTOMER_ID = "customer-1"
OTHER_CUSTOMER_ID = "customer-2"
ADMIN_ID = "admin-1"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class ManualTimer:
    """Монотонные часы для кэша настроек"""

    def __init__(self):
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


class InMemoryDatabase:
    def __init__(self):
        self.orders = {}
        self.notifications = {}
        self.outbox = {}
        self.store_settings = None
        # Имена репозиториев, которые падают с PersistenceError
        self.broken: set[str] = set()
        # update_state всегда проигрывает гонку
        self.lose_races = False
        self.commits = 0
        self.settings_reads = 0

    def check(self, name: str) -> None:
        if name in self.broken:
            raise PersistenceError(f"{name} storage unavailable")

    def customer_notifications(self, user_id: str):
        return [n for n in self.notifications.values() if n.user_id == user_id]


class _State:
    def __init__(self, db: InMemoryDatabase):
        self.orders = dict(db.orders)
        self.notifications = dict(db.notifications)
        self.outbox = dict(db.outbox)
        self.store_settings = db.store_settings


def _matches(order, user_id=None, statuses=None, payment_statuses=None, payment_method=None):
    if user_id is not None and order.user_id != user_id:
        return False
    if statuses is not None and order.status not in set(statuses):
        return False
    if payment_statuses is not None and order.payment_status not in set(payment_statuses):
        return False
    if payment_method is not None and order.payment_method != payment_method:
        return False
    return True


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, state: _State, db: InMemoryDatabase):
        self._state = state
        self._db = db

    async def get_by_id(self, order_id):
        self._db.check("orders")
        return self._state.orders.get(order_id)

    async def create(self, order):
        self._db.check("orders")
        self._state.orders[order.id] = order

    async def update_state(self, order, expected_version):
        self._db.check("orders")
        current = self._state.orders.get(order.id)
        if self._db.lose_races or current is None or current.version != expected_version:
            return False
        self._state.orders[order.id] = order.model_copy(update={"version": expected_version + 1})
        return True

    async def find(self, user_id=None, statuses=None, payment_statuses=None, payment_method=None,
                   limit=None, offset=0):
        self._db.check("orders")
        orders = [
            o for o in self._state.orders.values()
            if _matches(o, user_id, statuses, payment_statuses, payment_method)
        ]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        orders = orders[offset:]
        return orders[:limit] if limit is not None else orders

    async def count_by_status(self):
        counts = {}
        for order in self._state.orders.values():
            counts[order.status] = counts.get(order.status, 0) + 1
        return counts

    async def count(self, user_id=None, statuses=None, payment_statuses=None, payment_method=None,
                    created_from=None):
        return len([
            o for o in self._state.orders.values()
            if _matches(o, user_id, statuses, payment_statuses, payment_method)
            and (created_from is None or o.created_at >= created_from)
        ])

    async def sum_total(self, payment_statuses=None, payment_method=None, updated_from=None):
        return sum(
            (
                o.total for o in self._state.orders.values()
                if _matches(o, None, None, payment_statuses, payment_method)
                and (updated_from is None or o.updated_at >= updated_from)
            ),
            Decimal("0"),
        )


class InMemoryNotificationRepository(NotificationRepository):
    def __init__(self, state: _State, db: InMemoryDatabase):
        self._state = state
        self._db = db

    async def create(self, notification):
        self._db.check("notifications")
        self._state.notifications[notification.id] = notification

    async def list_for_user(self, user_id, unread_only=False, limit=50):
        items = [
            n for n in self._state.notifications.values()
            if n.user_id == user_id and (not unread_only or not n.read)
        ]
        return list(reversed(items))[:limit]

    async def count_unread(self, user_id):
        return len([n for n in self._state.notifications.values() if n.user_id == user_id and not n.read])

    async def mark_as_read(self, notification_id, user_id):
        notification = self._state.notifications.get(notification_id)
        if notification is None or notification.user_id != user_id:
            return False
        self._state.notifications[notification_id] = notification.model_copy(update={"read": True})
        return True

    async def mark_all_as_read(self, user_id):
        changed = 0
        for key, notification in list(self._state.notifications.items()):
            if notification.user_id == user_id and not notification.read:
                self._state.notifications[key] = notification.model_copy(update={"read": True})
                changed += 1
        return changed


class InMemoryOutboxRepository(OutboxRepository):
    def __init__(self, state: _State, db: InMemoryDatabase):
        self._state = state
        self._db = db

    async def create(self, event_type, event_data, aggregate_id):
        self._db.check("outbox")
        event_id = str(uuid.uuid4())
        self._state.outbox[event_id] = {
            "id": event_id,
            "event_type": event_type,
            "event_data": event_data,
            "aggregate_id": aggregate_id,
            "status": "pending",
        }
        return event_id

    async def get_pending(self, limit=10):
        return [dict(e) for e in self._state.outbox.values() if e["status"] == "pending"][:limit]

    async def mark_as_published(self, event_id):
        self._state.outbox[event_id] = {**self._state.outbox[event_id], "status": "published"}


class InMemoryStoreSettingsRepository(StoreSettingsRepository):
    def __init__(self, state: _State, db: InMemoryDatabase):
        self._state = state
        self._db = db

    async def get(self):
        self._db.check("store_settings")
        self._db.settings_reads += 1
        return self._state.store_settings

    async def save(self, store_settings):
        self._db.check("store_settings")
        self._state.store_settings = store_settings


class _InMemoryUnitOfWorkImpl:
    def __init__(self, db: InMemoryDatabase):
        self._db = db
        self._state = _State(db)
        self.orders = InMemoryOrderRepository(self._state, db)
        self.notifications = InMemoryNotificationRepository(self._state, db)
        self.outbox = InMemoryOutboxRepository(self._state, db)
        self.store_settings = InMemoryStoreSettingsRepository(self._state, db)

    async def commit(self):
        self._db.orders = dict(self._state.orders)
        self._db.notifications = dict(self._state.notifications)
        self._db.outbox = dict(self._state.outbox)
        self._db.store_settings = self._state.store_settings
        self._db.commits += 1

    async def rollback(self):
        self._state.__init__(self._db)


class InMemoryUnitOfWork:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    @asynccontextmanager
    async def __call__(self):
        # Незакоммиченные изменения теряются вместе с _State
        yield _InMemoryUnitOfWorkImpl(self.db)


class FakeCatalog(CatalogService):
    def __init__(self, products):
        self.products = {p.id: p for p in products}

    async def get_product(self, product_id):
        return self.products.get(product_id)


class FakeIdentity(IdentityService):
    def __init__(self, actors, admin_ids, contacts=None):
        self.actors = actors
        self.admin_ids = admin_ids
        self.contacts = contacts or {}
        self.down = False

    async def get_actor(self, access_token):
        if self.down:
            raise IdentityServiceError("identity down")
        return self.actors.get(access_token)

    async def list_admin_ids(self):
        if self.down:
            raise IdentityServiceError("identity down")
        return list(self.admin_ids)

    async def get_contacts(self, user_ids):
        return {uid: self.contacts[uid] for uid in user_ids if uid in self.contacts}


class FakePublisher(ChangeFeedPublisher):
    def __init__(self, fail: Optional[set] = None):
        self.published = []
        self.fail = fail or set()

    async def publish(self, event_type, payload, key):
        if event_type in self.fail:
            return False
        self.published.append((event_type, payload, key))
        return True
