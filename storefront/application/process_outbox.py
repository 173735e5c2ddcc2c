import logging
import json

from storefront.application.interfaces import ChangeFeedPublisher

logger = logging.getLogger(__name__)


class ProcessOutboxEventsUseCase:
    """Публикует изменения заказов и уведомлений в change feed.

    Feed нужен только для обновления read models в реальном времени, доставка
    уведомлений от него не зависит.
    """

    def __init__(self, unit_of_work, publisher: ChangeFeedPublisher):
        self._uow = unit_of_work
        self._publisher = publisher

    async def __call__(self, limit: int = 20) -> int:
        """Обрабатывает pending события из outbox. Возвращает количество опубликованных."""
        published = 0

        async with self._uow() as uow:
            pending = await uow.outbox.get_pending(limit=limit)

            for event in pending:
                event_data = event["event_data"]
                if isinstance(event_data, str):
                    try:
                        event_data = json.loads(event_data)
                    except ValueError as e:
                        # Строка остается pending, остальные события публикуются
                        logger.error(f"Некорректный payload {event['event_type']} event {event['id']}: {e}")
                        continue

                success = await self._publisher.publish(
                    event_type=event["event_type"],
                    payload=event_data,
                    key=event["aggregate_id"],
                )
                if success:
                    await uow.outbox.mark_as_published(event["id"])
                    published += 1
                    logger.info(f"Опубликовано {event['event_type']} event {event['id']}")
                else:
                    logger.warning(f"Неуспешная публикация {event['event_type']} event {event['id']}")

            await uow.commit()

        return published
