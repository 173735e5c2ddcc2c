import logging
from typing import List
from pydantic import BaseModel

from storefront.domain.exceptions import NotificationNotFoundError
from storefront.domain.models import Actor, Notification


logger = logging.getLogger(__name__)


class NotificationFeed(BaseModel):
    notifications: List[Notification]
    unread_count: int


class ListNotificationsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, unread_only: bool = False, limit: int = 50) -> NotificationFeed:
        async with self._uow() as uow:
            notifications = await uow.notifications.list_for_user(actor.id, unread_only=unread_only, limit=limit)
            unread = await uow.notifications.count_unread(actor.id)
        return NotificationFeed(notifications=notifications, unread_count=unread)


class MarkNotificationReadUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, notification_id: str) -> None:
        async with self._uow() as uow:
            if not await uow.notifications.mark_as_read(notification_id, actor.id):
                raise NotificationNotFoundError(f"Уведомление {notification_id} не найдено")
            await uow.commit()


class MarkAllNotificationsReadUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor) -> int:
        async with self._uow() as uow:
            changed = await uow.notifications.mark_all_as_read(actor.id)
            await uow.commit()
        logger.info(f"Пользователь {actor.id} прочитал {changed} уведомлений")
        return changed
